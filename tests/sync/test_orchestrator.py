"""Tests for SyncOrchestrator: full cycles against an in-memory store."""

from unittest.mock import AsyncMock

import httpx
import pytest
from sqlalchemy import func, select

from pnode_monitor.errors import SyncStartError
from pnode_monitor.models import NetworkStatsSnapshot, NodeStatsSnapshot, SyncLog
from pnode_monitor.prpc.client import PRpcClient
from pnode_monitor.sync.collector import FanOutCollector
from pnode_monitor.sync.orchestrator import SyncOrchestrator


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


async def _only_sync_log(session_factory) -> SyncLog:
    async with session_factory() as session:
        return (await session.execute(select(SyncLog))).scalar_one()


def _orchestrator(roster, fetcher, store, retention=None) -> SyncOrchestrator:
    return SyncOrchestrator(
        roster=roster,
        collector=FanOutCollector(fetcher),
        store=store,
        retention=retention,
    )


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_partial_failure(self, store, session_factory, fake_fetcher, stats_factory):
        """Two nodes answer, one times out: 2 node rows, 1 network row, success."""
        fetcher = fake_fetcher({"addr1": stats_factory(), "addr2": stats_factory(uptime=10), "addr3": None})
        orchestrator = _orchestrator(["addr1", "addr2", "addr3"], fetcher, store)

        result = await orchestrator.run_cycle()

        assert result.success is True
        assert result.nodes_queried == 3
        assert result.nodes_success == 2
        assert result.nodes_failed == 1
        assert result.error is None
        assert await _count(session_factory, NodeStatsSnapshot) == 2
        assert await _count(session_factory, NetworkStatsSnapshot) == 1

        log = await _only_sync_log(session_factory)
        assert log.completed_at is not None
        assert log.nodes_queried == 3
        assert log.nodes_success == 2
        assert log.nodes_failed == 1
        assert log.duration_ms is not None
        assert log.error is None

    @pytest.mark.asyncio
    async def test_single_node_network_snapshot(self, store, fake_fetcher, stats_factory):
        fetcher = fake_fetcher({"addr1": stats_factory(file_size=104857600)})

        await _orchestrator(["addr1"], fetcher, store).run_cycle()

        network = await store.latest_network_snapshot()
        assert network.used_storage == 104857600
        assert network.total_storage == 136314880
        assert network.total_shards == 10
        assert network.available_shards == 10
        assert network.total_pnodes == 1
        assert network.active_pnodes == 1

    @pytest.mark.asyncio
    async def test_all_nodes_fail(self, store, session_factory, fake_fetcher):
        roster = ["addr1", "addr2", "addr3", "addr4"]

        result = await _orchestrator(roster, fake_fetcher({}), store).run_cycle()

        assert result.success is True
        assert result.nodes_success == 0
        assert result.nodes_failed == 4
        assert await _count(session_factory, NodeStatsSnapshot) == 0
        assert await _count(session_factory, NetworkStatsSnapshot) == 0
        log = await _only_sync_log(session_factory)
        assert log.completed_at is not None
        assert log.nodes_success == 0
        assert log.nodes_failed == 4

    @pytest.mark.asyncio
    async def test_empty_roster(self, store, session_factory, fake_fetcher):
        result = await _orchestrator([], fake_fetcher({}), store).run_cycle()

        assert result.success is True
        assert result.nodes_queried == 0
        assert result.nodes_success == 0
        assert result.nodes_failed == 0
        assert await _count(session_factory, NetworkStatsSnapshot) == 0
        log = await _only_sync_log(session_factory)
        assert log.completed_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ok_count,fail_count", [(0, 0), (1, 0), (0, 3), (2, 5), (6, 1)])
    async def test_counts_always_sum_to_roster(self, store, fake_fetcher, stats_factory, ok_count, fail_count):
        responses = {f"ok{i}": stats_factory() for i in range(ok_count)}
        roster = list(responses) + [f"bad{i}" for i in range(fail_count)]

        result = await _orchestrator(roster, fake_fetcher(responses), store).run_cycle()

        assert result.nodes_success + result.nodes_failed == len(roster)

    def test_duplicate_roster_addresses_rejected(self, store, fake_fetcher):
        with pytest.raises(ValueError, match="duplicate"):
            _orchestrator(["a", "b", "a"], fake_fetcher({}), store)

    @pytest.mark.asyncio
    async def test_oversized_counter_fails_only_that_node(self, store, session_factory, stats_payload):
        """A node reporting a counter beyond the column range must not sink the rest of the cycle."""

        def handler(request: httpx.Request) -> httpx.Response:
            payload = dict(stats_payload)
            if request.url.host == "10.0.0.2":
                payload["packets_sent"] = 2**64
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": payload})

        client = PRpcClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        orchestrator = _orchestrator(["10.0.0.1", "10.0.0.2"], client, store)

        result = await orchestrator.run_cycle()

        assert result.success is True
        assert result.nodes_success == 1
        assert result.nodes_failed == 1
        assert await _count(session_factory, NodeStatsSnapshot) == 1
        assert await _count(session_factory, NetworkStatsSnapshot) == 1
        assert (await store.latest_node_snapshot("10.0.0.1")) is not None
        log = await _only_sync_log(session_factory)
        assert log.nodes_success == 1
        assert log.nodes_failed == 1
        assert log.error is None

    @pytest.mark.asyncio
    async def test_cycle_rows_share_one_timestamp(self, store, session_factory, fake_fetcher, stats_factory):
        fetcher = fake_fetcher({"a": stats_factory(), "b": stats_factory()})

        await _orchestrator(["a", "b"], fetcher, store).run_cycle()

        async with session_factory() as session:
            node_times = set((await session.execute(select(NodeStatsSnapshot.created_at))).scalars())
            network_times = set((await session.execute(select(NetworkStatsSnapshot.created_at))).scalars())
        assert len(node_times) == 1
        assert node_times == network_times


class TestRunCycleFailures:
    @pytest.mark.asyncio
    async def test_store_write_failure_is_recorded(self, store, session_factory, fake_fetcher, stats_factory):
        """A failing network snapshot write fails the cycle and lands in the SyncLog."""
        store.append_network_snapshot = AsyncMock(side_effect=RuntimeError("disk full"))
        fetcher = fake_fetcher({"a": stats_factory(), "b": stats_factory()})

        result = await _orchestrator(["a", "b", "c"], fetcher, store).run_cycle()

        assert result.success is False
        assert result.error == "disk full"
        assert result.nodes_success == 0
        assert result.nodes_failed == 3
        log = await _only_sync_log(session_factory)
        assert log.completed_at is not None
        assert log.error == "disk full"
        assert log.nodes_success == 0
        assert log.nodes_failed == 3

    @pytest.mark.asyncio
    async def test_node_snapshot_failure_skips_network_write(self, store, fake_fetcher, stats_factory):
        store.append_node_snapshots = AsyncMock(side_effect=RuntimeError("constraint"))
        store.append_network_snapshot = AsyncMock()
        fetcher = fake_fetcher({"a": stats_factory()})

        result = await _orchestrator(["a"], fetcher, store).run_cycle()

        assert result.success is False
        store.append_network_snapshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_sync_log_creation_failure_propagates(self, store, session_factory, fake_fetcher):
        store.create_sync_log = AsyncMock(side_effect=RuntimeError("db down"))
        fetcher = fake_fetcher({})

        with pytest.raises(SyncStartError, match="db down"):
            await _orchestrator(["a", "b"], fetcher, store).run_cycle()

        assert fetcher.calls == []
        assert await _count(session_factory, SyncLog) == 0

    @pytest.mark.asyncio
    async def test_completion_failure_still_returns_result(self, store, fake_fetcher, stats_factory):
        store.complete_sync_log = AsyncMock(side_effect=RuntimeError("db gone"))

        result = await _orchestrator(["a"], fake_fetcher({"a": stats_factory()}), store).run_cycle()

        assert result.success is False
        assert result.error == "db gone"
        assert store.complete_sync_log.await_count == 2


class TestRun:
    @pytest.mark.asyncio
    async def test_run_includes_cleanup_summary(self, store, fake_fetcher, stats_factory):
        retention = AsyncMock()
        retention.run_cleanup = AsyncMock(
            return_value={"deleted_pnodes": 0, "deleted_network_stats": 0, "deleted_sync_logs": 0}
        )

        report = await _orchestrator(["a"], fake_fetcher({"a": stats_factory()}), store, retention).run()

        assert report.sync.success is True
        assert report.cleanup == {"deleted_pnodes": 0, "deleted_network_stats": 0, "deleted_sync_logs": 0}
        payload = report.to_dict()
        assert payload["success"] is True
        assert payload["sync"]["nodes_success"] == 1
        retention.run_cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retention_failure_does_not_change_sync_result(self, store, fake_fetcher, stats_factory):
        retention = AsyncMock()
        retention.run_cleanup = AsyncMock(side_effect=RuntimeError("locked"))

        report = await _orchestrator(["a"], fake_fetcher({"a": stats_factory()}), store, retention).run()

        assert report.sync.success is True
        assert report.cleanup is None
