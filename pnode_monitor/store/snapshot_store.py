"""Snapshot store: append-only snapshot tables plus sync log bookkeeping.

Every operation opens its own session and commits before returning, so a
failure in one write never rolls back an earlier one.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import SyncLogStateError
from ..models.network_snapshot import NetworkStatsSnapshot
from ..models.node_snapshot import NodeStatsSnapshot
from ..models.sync_log import SyncLog
from ..sync.aggregator import NetworkAggregate, NodeSnapshotValues
from ..utils.logging import get_logger

logger = get_logger("store.snapshots")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotStore:
    """Persistence for node snapshots, network snapshots, and sync logs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # --- Writes ---

    async def append_node_snapshots(
        self,
        batch: Sequence[NodeSnapshotValues],
        created_at: datetime,
    ) -> int:
        """Insert one row per node in a single transaction. Empty batches are a no-op."""
        if not batch:
            return 0
        rows = [{**values.to_dict(), "created_at": created_at} for values in batch]
        async with self._session_factory() as session:
            await session.execute(insert(NodeStatsSnapshot), rows)
            await session.commit()
        logger.debug("node_snapshots_appended", count=len(rows))
        return len(rows)

    async def append_network_snapshot(
        self,
        aggregate: NetworkAggregate,
        created_at: datetime,
    ) -> NetworkStatsSnapshot:
        async with self._session_factory() as session:
            row = NetworkStatsSnapshot(**aggregate.to_dict(), created_at=created_at)
            session.add(row)
            await session.commit()
            return row

    async def create_sync_log(self, nodes_queried: int) -> int:
        """Open a SyncLog for a new cycle and return its id."""
        async with self._session_factory() as session:
            log = SyncLog(started_at=utcnow(), nodes_queried=nodes_queried)
            session.add(log)
            await session.commit()
            return log.id

    async def complete_sync_log(
        self,
        log_id: int,
        nodes_success: int,
        nodes_failed: int,
        duration_ms: int,
        error: Optional[str] = None,
    ) -> None:
        """Fill in the completion fields of an open SyncLog.

        Raises SyncLogStateError if the log does not exist or was already completed.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                update(SyncLog)
                .where(SyncLog.id == log_id, SyncLog.completed_at.is_(None))
                .values(
                    completed_at=utcnow(),
                    nodes_success=nodes_success,
                    nodes_failed=nodes_failed,
                    duration_ms=duration_ms,
                    error=error,
                )
            )
            if result.rowcount != 1:
                await session.rollback()
                raise SyncLogStateError(log_id)
            await session.commit()

    # --- Reads ---

    async def latest_node_snapshots(self) -> list[NodeStatsSnapshot]:
        """All node rows from the newest cycle, highest uptime first."""
        latest = select(func.max(NodeStatsSnapshot.created_at)).scalar_subquery()
        async with self._session_factory() as session:
            result = await session.execute(
                select(NodeStatsSnapshot)
                .where(NodeStatsSnapshot.created_at == latest)
                .order_by(NodeStatsSnapshot.uptime_seconds.desc(), NodeStatsSnapshot.id)
            )
            return list(result.scalars().all())

    async def latest_node_snapshot(self, ip_address: str) -> Optional[NodeStatsSnapshot]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(NodeStatsSnapshot)
                .where(NodeStatsSnapshot.ip_address == ip_address)
                .order_by(NodeStatsSnapshot.created_at.desc(), NodeStatsSnapshot.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def latest_network_snapshot(self) -> Optional[NetworkStatsSnapshot]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(NetworkStatsSnapshot)
                .order_by(NetworkStatsSnapshot.created_at.desc(), NetworkStatsSnapshot.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def latest_sync_log(self) -> Optional[SyncLog]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SyncLog).order_by(SyncLog.started_at.desc(), SyncLog.id.desc()).limit(1)
            )
            return result.scalar_one_or_none()

    async def snapshot_counts(self) -> dict:
        async with self._session_factory() as session:
            pnodes = await session.scalar(select(func.count()).select_from(NodeStatsSnapshot))
            network = await session.scalar(select(func.count()).select_from(NetworkStatsSnapshot))
            logs = await session.scalar(select(func.count()).select_from(SyncLog))
        return {"pnodes": pnodes or 0, "network_stats": network or 0, "sync_logs": logs or 0}

    # --- Retention ---

    async def delete_older_than(self, cutoff: datetime) -> dict:
        """Delete snapshot and log rows strictly older than ``cutoff``."""
        async with self._session_factory() as session:
            pnodes = await session.execute(
                delete(NodeStatsSnapshot).where(NodeStatsSnapshot.created_at < cutoff)
            )
            network = await session.execute(
                delete(NetworkStatsSnapshot).where(NetworkStatsSnapshot.created_at < cutoff)
            )
            logs = await session.execute(delete(SyncLog).where(SyncLog.started_at < cutoff))
            await session.commit()

        return {
            "deleted_pnodes": pnodes.rowcount,
            "deleted_network_stats": network.rowcount,
            "deleted_sync_logs": logs.rowcount,
        }
