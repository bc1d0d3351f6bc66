"""Fan-out collector: one concurrent pRPC call per roster address."""

import asyncio
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ..prpc.client import NodeStatsResult
from ..prpc.schemas import NodeStats
from ..utils.logging import get_logger

logger = get_logger("sync.collector")


class StatsFetcher(Protocol):
    async def fetch_stats(self, address: str) -> NodeStatsResult: ...


@dataclass
class CollectionResult:
    """Partitioned outcome of one fan-out over the roster."""

    successes: list[tuple[str, NodeStats]] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def queried(self) -> int:
        return len(self.successes) + self.failed


class FanOutCollector:
    """Polls every roster address at once and waits for all of them to settle.

    A slow or failing node only affects its own slot; nothing is cancelled
    and there is no early return.
    """

    def __init__(self, client: StatsFetcher):
        self._client = client

    async def collect(self, roster: Sequence[str]) -> CollectionResult:
        result = CollectionResult()
        if not roster:
            return result

        outcomes = await asyncio.gather(
            *(self._client.fetch_stats(address) for address in roster),
            return_exceptions=True,
        )

        for address, outcome in zip(roster, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error("collector_fetch_crashed", address=address, error=str(outcome))
                result.failures.append((address, f"unexpected error: {outcome}"))
            elif outcome.ok:
                result.successes.append((address, outcome.stats))
            else:
                result.failures.append((address, outcome.error or "unavailable"))

        logger.info(
            "collector_fanout_complete",
            queried=len(roster),
            succeeded=len(result.successes),
            failed=result.failed,
        )
        return result
