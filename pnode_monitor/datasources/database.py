"""Data source backed by persisted sync snapshots."""

from typing import Optional

from ..store.snapshot_store import SnapshotStore
from ..sync.aggregator import AggregationSettings
from .base import PNodeDataSource, pnode_view


class DatabaseDataSource(PNodeDataSource):
    name = "database"

    def __init__(self, store: SnapshotStore, settings: AggregationSettings):
        self._store = store
        self._settings = settings

    async def list_pnodes(self) -> list[dict]:
        snapshots = await self._store.latest_node_snapshots()
        return [pnode_view(s.to_dict(), self._settings) for s in snapshots]

    async def get_pnode(self, ip_address: str) -> Optional[dict]:
        snapshot = await self._store.latest_node_snapshot(ip_address)
        if snapshot is None:
            return None
        return pnode_view(snapshot.to_dict(), self._settings)

    async def get_network_stats(self) -> Optional[dict]:
        snapshot = await self._store.latest_network_snapshot()
        return snapshot.to_dict() if snapshot else None
