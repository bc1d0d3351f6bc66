"""Data source that polls the roster over pRPC on demand.

Results are cached for a short TTL; nothing is persisted.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..sync.aggregator import AggregationSettings, NetworkAggregate, aggregate, build_node_snapshot
from ..sync.collector import FanOutCollector
from ..utils.cache import TTLCache
from ..utils.logging import get_logger
from .base import PNodeDataSource, pnode_view

logger = get_logger("datasources.live")


@dataclass(frozen=True)
class LivePoll:
    pnodes: list[dict]
    network: NetworkAggregate
    observed_at: datetime


class LiveDataSource(PNodeDataSource):
    name = "prpc"

    def __init__(
        self,
        roster: Sequence[str],
        collector: FanOutCollector,
        settings: AggregationSettings,
        cache_ttl: float = 30.0,
    ):
        self._roster = tuple(roster)
        self._collector = collector
        self._settings = settings
        self._cache = TTLCache(ttl=cache_ttl)

    async def _poll(self) -> LivePoll:
        collection = await self._collector.collect(self._roster)
        observed_at = datetime.now(timezone.utc)
        pnodes = []
        for ip, stats in collection.successes:
            values = build_node_snapshot(ip, stats, self._settings).to_dict()
            values["created_at"] = observed_at.isoformat()
            pnodes.append(pnode_view(values, self._settings))
        pnodes.sort(key=lambda p: p["uptime_seconds"], reverse=True)
        logger.debug("live_poll_complete", active=len(pnodes), roster=len(self._roster))
        return LivePoll(
            pnodes=pnodes,
            network=aggregate(collection.successes, len(self._roster), self._settings),
            observed_at=observed_at,
        )

    async def _latest(self) -> LivePoll:
        return await self._cache.get_or_compute(self._poll)

    async def list_pnodes(self) -> list[dict]:
        return list((await self._latest()).pnodes)

    async def get_pnode(self, ip_address: str) -> Optional[dict]:
        for pnode in (await self._latest()).pnodes:
            if pnode["ip_address"] == ip_address:
                return pnode
        return None

    async def get_network_stats(self) -> Optional[dict]:
        poll = await self._latest()
        if poll.network.active_pnodes == 0:
            return None
        stats = poll.network.to_dict()
        stats["created_at"] = poll.observed_at.isoformat()
        return stats
