"""Sync orchestrator: one full poll, aggregate, persist, and retention cycle."""

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..errors import SyncStartError
from ..store.snapshot_store import SnapshotStore, utcnow
from ..utils.logging import get_logger
from .aggregator import AggregationSettings, aggregate, build_node_snapshot
from .collector import FanOutCollector

logger = get_logger("sync.orchestrator")


@dataclass
class SyncResult:
    success: bool
    nodes_queried: int
    nodes_success: int
    nodes_failed: int
    duration_ms: int
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncReport:
    """A cycle result plus the retention pass that followed it."""

    sync: SyncResult
    cleanup: Optional[dict] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "success": self.sync.success,
            "sync": self.sync.to_dict(),
            "cleanup": self.cleanup,
            "timestamp": self.timestamp.isoformat(),
        }


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class SyncOrchestrator:
    """Runs sync cycles over a fixed roster.

    Holds no lock: two overlapping cycles each own their own SyncLog row.
    """

    def __init__(
        self,
        roster: Sequence[str],
        collector: FanOutCollector,
        store: SnapshotStore,
        settings: Optional[AggregationSettings] = None,
        retention=None,
    ):
        self.roster = tuple(roster)
        if len(set(self.roster)) != len(self.roster):
            raise ValueError("roster must not contain duplicate addresses")
        self._collector = collector
        self._store = store
        self._settings = settings or AggregationSettings()
        self._retention = retention

    async def run_cycle(self) -> SyncResult:
        """Run one cycle and return its structured result.

        Raises SyncStartError only when the SyncLog row cannot be created.
        """
        started = time.monotonic()
        nodes_queried = len(self.roster)

        try:
            log_id = await self._store.create_sync_log(nodes_queried)
        except Exception as e:
            logger.error("sync_log_create_failed", error=str(e))
            raise SyncStartError(str(e), nodes_queried=nodes_queried) from e

        logger.info("sync_cycle_started", sync_log_id=log_id, nodes_queried=nodes_queried)

        try:
            collection = await self._collector.collect(self.roster)

            if collection.successes:
                created_at = utcnow()
                network = aggregate(collection.successes, nodes_queried, self._settings)
                await self._store.append_node_snapshots(
                    [build_node_snapshot(ip, stats, self._settings) for ip, stats in collection.successes],
                    created_at,
                )
                await self._store.append_network_snapshot(network, created_at)

            duration_ms = _elapsed_ms(started)
            await self._store.complete_sync_log(
                log_id,
                nodes_success=len(collection.successes),
                nodes_failed=collection.failed,
                duration_ms=duration_ms,
            )
        except Exception as e:
            duration_ms = _elapsed_ms(started)
            error = str(e) or e.__class__.__name__
            logger.error("sync_cycle_failed", sync_log_id=log_id, error=error, exc_info=True)
            try:
                await self._store.complete_sync_log(
                    log_id,
                    nodes_success=0,
                    nodes_failed=nodes_queried,
                    duration_ms=duration_ms,
                    error=error,
                )
            except Exception as log_error:
                logger.error("sync_log_complete_failed", sync_log_id=log_id, error=str(log_error))
            return SyncResult(
                success=False,
                nodes_queried=nodes_queried,
                nodes_success=0,
                nodes_failed=nodes_queried,
                duration_ms=duration_ms,
                error=error,
            )

        logger.info(
            "sync_cycle_complete",
            sync_log_id=log_id,
            nodes_success=len(collection.successes),
            nodes_failed=collection.failed,
            duration_ms=duration_ms,
        )
        return SyncResult(
            success=True,
            nodes_queried=nodes_queried,
            nodes_success=len(collection.successes),
            nodes_failed=collection.failed,
            duration_ms=duration_ms,
        )

    async def run(self) -> SyncReport:
        """Run one cycle followed by retention cleanup."""
        result = await self.run_cycle()

        cleanup = None
        if self._retention is not None:
            try:
                cleanup = await self._retention.run_cleanup()
            except Exception as e:
                logger.error("retention_cleanup_error", error=str(e))

        return SyncReport(sync=result, cleanup=cleanup)
