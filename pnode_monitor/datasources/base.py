"""Read-side data source interface shared by the dashboard routes."""

from abc import ABC, abstractmethod
from typing import Optional

from ..sync.aggregator import AggregationSettings, shard_count, uptime_percent


def pnode_view(values: dict, settings: AggregationSettings) -> dict:
    """Add dashboard-derived fields to raw node snapshot values."""
    capacity = values.get("storage_capacity") or 0
    used = values.get("storage_used") or 0
    view = dict(values)
    view["uptime_percent"] = uptime_percent(values.get("uptime_seconds") or 0)
    view["storage_utilization"] = (used / capacity * 100) if capacity else 0.0
    view["shards"] = shard_count(values.get("file_size") or 0, settings.shard_size_bytes)
    return view


class PNodeDataSource(ABC):
    """Where the dashboard reads node and network statistics from.

    One implementation is selected at startup from configuration.
    """

    name: str = "base"

    @abstractmethod
    async def list_pnodes(self) -> list[dict]:
        """Newest view of every node, highest uptime first."""
        ...

    @abstractmethod
    async def get_pnode(self, ip_address: str) -> Optional[dict]:
        """Newest view of one node, or None."""
        ...

    @abstractmethod
    async def get_network_stats(self) -> Optional[dict]:
        """Newest network aggregate, or None."""
        ...
