"""Data retention manager: deletes snapshots and sync logs past the retention window."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..store.snapshot_store import SnapshotStore
from ..utils.logging import get_logger

logger = get_logger("maintenance.retention")


class RetentionManager:
    """Deletes rows older than ``retention_hours`` from every snapshot table."""

    def __init__(self, store: SnapshotStore, config):
        self._store = store
        self._config = config

    async def run_cleanup(self, hours_to_keep: Optional[float] = None) -> dict:
        """Run retention cleanup once.

        Returns the store's per-table deletion counts unchanged. Running it
        again with no new data deletes nothing.
        """
        if hours_to_keep is None:
            hours_to_keep = getattr(self._config, "retention_hours", 24)
        if hours_to_keep <= 0:
            raise ValueError("hours_to_keep must be greater than zero")

        cutoff = datetime.now(timezone.utc) - timedelta(hours=hours_to_keep)
        summary = await self._store.delete_older_than(cutoff)
        logger.info(
            "retention_cleanup",
            cutoff=cutoff.isoformat(),
            hours_to_keep=hours_to_keep,
            **summary,
        )
        return summary
