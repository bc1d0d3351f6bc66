"""Sync routes: trigger a sync cycle and report sync status."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...dependencies import get_orchestrator, get_store, require_sync_api_key
from ...store.snapshot_store import SnapshotStore
from ...sync.orchestrator import SyncOrchestrator
from ...utils.logging import get_logger

router = APIRouter(prefix="/sync", tags=["sync"])

logger = get_logger("api.sync")


@router.post("", dependencies=[Depends(require_sync_api_key)])
async def trigger_sync(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """Run one sync cycle followed by retention cleanup (API key required)."""
    report = await orchestrator.run()
    logger.info("sync_triggered", success=report.sync.success)
    return report.to_dict()


@router.get("")
async def get_sync_status(store: SnapshotStore = Depends(get_store)):
    """Most recent sync log and current snapshot row counts."""
    last_sync = await store.latest_sync_log()
    counts = await store.snapshot_counts()
    return {
        "last_sync": last_sync.to_dict() if last_sync else None,
        "snapshot_counts": counts,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
