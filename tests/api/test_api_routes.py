"""API tests: sync trigger, status, and read routes over an in-memory database."""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pnode_monitor.context import AppContext
from pnode_monitor.main import create_app

API_KEY = {"X-API-Key": "test-sync-key"}


def _node_handler(stats_payload):
    """Fake pRPC network: .1 and .2 answer, .3 times out."""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "10.0.0.3":
            raise httpx.ReadTimeout("timed out", request=request)
        uptime = 86400 if host == "10.0.0.1" else 3600
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {**stats_payload, "uptime": uptime}})

    return handler


@pytest_asyncio.fixture
async def client(config, engine, stats_payload):
    app = create_app(config)
    node_client = httpx.AsyncClient(transport=httpx.MockTransport(_node_handler(stats_payload)))
    context = AppContext.build(config, engine=engine, http_client=node_client)
    app.state.context = context

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await context.close()


class TestSyncTrigger:
    @pytest.mark.asyncio
    async def test_rejects_missing_key(self, client):
        resp = await client.post("/api/v1/sync")

        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] is True
        assert body["detail"] == "Unauthorized - Invalid API key"

    @pytest.mark.asyncio
    async def test_rejects_wrong_key(self, client):
        resp = await client.post("/api/v1/sync", headers={"X-API-Key": "nope"})

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_runs_cycle_and_cleanup(self, client):
        resp = await client.post("/api/v1/sync", headers=API_KEY)

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["sync"]["nodes_queried"] == 3
        assert data["sync"]["nodes_success"] == 2
        assert data["sync"]["nodes_failed"] == 1
        assert data["cleanup"] == {"deleted_pnodes": 0, "deleted_network_stats": 0, "deleted_sync_logs": 0}
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_status_after_sync(self, client):
        await client.post("/api/v1/sync", headers=API_KEY)

        resp = await client.get("/api/v1/sync")

        assert resp.status_code == 200
        data = resp.json()
        assert data["last_sync"]["nodes_success"] == 2
        assert data["last_sync"]["nodes_failed"] == 1
        assert data["last_sync"]["completed_at"] is not None
        assert data["snapshot_counts"] == {"pnodes": 2, "network_stats": 1, "sync_logs": 1}

    @pytest.mark.asyncio
    async def test_status_before_any_sync(self, client):
        resp = await client.get("/api/v1/sync")

        assert resp.status_code == 200
        assert resp.json()["last_sync"] is None


class TestReadRoutes:
    @pytest.mark.asyncio
    async def test_pnodes_empty_before_sync(self, client):
        resp = await client.get("/api/v1/pnodes")

        data = resp.json()
        assert data["total"] == 0
        assert data["pnodes"] == []
        assert data["message"] == "No data available. Run sync first."

    @pytest.mark.asyncio
    async def test_pnodes_after_sync(self, client):
        await client.post("/api/v1/sync", headers=API_KEY)

        resp = await client.get("/api/v1/pnodes")

        data = resp.json()
        assert data["source"] == "database"
        assert data["total"] == 2
        assert [p["ip_address"] for p in data["pnodes"]] == ["10.0.0.1", "10.0.0.2"]
        assert data["pnodes"][0]["file_size"] == 104857600

    @pytest.mark.asyncio
    async def test_network_after_sync(self, client):
        await client.post("/api/v1/sync", headers=API_KEY)

        resp = await client.get("/api/v1/network")

        stats = resp.json()["stats"]
        assert stats["total_pnodes"] == 3
        assert stats["active_pnodes"] == 2
        assert stats["used_storage"] == 2 * 104857600
        assert stats["total_shards"] == 20

    @pytest.mark.asyncio
    async def test_network_empty_before_sync(self, client):
        data = (await client.get("/api/v1/network")).json()

        assert data["stats"] is None
        assert "message" in data

    @pytest.mark.asyncio
    async def test_single_pnode(self, client):
        await client.post("/api/v1/sync", headers=API_KEY)

        resp = await client.get("/api/v1/pnodes/10.0.0.2")

        assert resp.status_code == 200
        assert resp.json()["pnode"]["uptime_seconds"] == 3600

    @pytest.mark.asyncio
    async def test_single_pnode_without_data(self, client):
        resp = await client.get("/api/v1/pnodes/10.0.0.3")

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_ip_not_found(self, client):
        resp = await client.get("/api/v1/pnodes/8.8.8.8")

        assert resp.status_code == 404
        assert "not in the roster" in resp.json()["detail"]


class TestLiveStats:
    @pytest.mark.asyncio
    async def test_live_stats_for_roster_node(self, client):
        resp = await client.get("/api/v1/pnodes/10.0.0.1/stats")

        assert resp.status_code == 200
        data = resp.json()
        assert data["ip"] == "10.0.0.1"
        assert data["stats"]["uptime"] == 86400

    @pytest.mark.asyncio
    async def test_live_stats_unavailable_node(self, client):
        resp = await client.get("/api/v1/pnodes/10.0.0.3/stats")

        assert resp.status_code == 502

    @pytest.mark.asyncio
    async def test_live_stats_outside_roster(self, client):
        resp = await client.get("/api/v1/pnodes/8.8.8.8/stats")

        assert resp.status_code == 400


class TestServiceRoutes:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["roster_size"] == 3

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        resp = await client.get("/", headers={"X-Request-ID": "abc-123"})

        assert resp.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_context_missing_returns_503(self, config):
        app = create_app(config)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/api/v1/pnodes")

        assert resp.status_code == 503
