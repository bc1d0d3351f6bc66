"""Shared test fixtures: in-memory database, fake pRPC nodes, sample payloads."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pnode_monitor.config import PNodeMonitorConfig
from pnode_monitor.models.base import Base
from pnode_monitor.prpc.client import NodeStatsResult
from pnode_monitor.prpc.schemas import NodeStats
from pnode_monitor.store.snapshot_store import SnapshotStore

ROSTER = ("10.0.0.1", "10.0.0.2", "10.0.0.3")

STATS_PAYLOAD = {
    "active_streams": 3,
    "cpu_percent": 12.5,
    "current_index": 42,
    "file_size": 104857600,
    "last_updated": 1760000000,
    "packets_received": 1000,
    "packets_sent": 900,
    "ram_total": 8589934592,
    "ram_used": 2147483648,
    "total_bytes": 209715200,
    "total_pages": 50,
    "uptime": 172800,
}


def make_stats(**overrides) -> NodeStats:
    return NodeStats(**{**STATS_PAYLOAD, **overrides})


class FakeFetcher:
    """Stands in for PRpcClient.

    ``responses`` maps address -> NodeStats (success), None (unavailable),
    or an exception instance (raised from the call).
    """

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[str] = []

    async def fetch_stats(self, address: str) -> NodeStatsResult:
        self.calls.append(address)
        outcome = self.responses.get(address)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return NodeStatsResult.unavailable(address, "timeout")
        return NodeStatsResult(address=address, stats=outcome)


@pytest.fixture
def stats_factory():
    return make_stats


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def config(tmp_path):
    return PNodeMonitorConfig(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        node_roster=list(ROSTER),
        sync_api_key="test-sync-key",
        sync_interval_seconds=0,
        data_source="database",
        log_dir=str(tmp_path / "logs"),
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return SnapshotStore(session_factory)


@pytest.fixture
def hours_ago():
    def _hours_ago(hours: float) -> datetime:
        return datetime.now(timezone.utc) - timedelta(hours=hours)

    return _hours_ago


@pytest.fixture
def stats_payload():
    return dict(STATS_PAYLOAD)
