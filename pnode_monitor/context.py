"""Application context: every long-lived collaborator, built once and closed once."""

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .config import PNodeMonitorConfig
from .database import build_engine, build_session_factory
from .datasources import PNodeDataSource, build_data_source
from .maintenance.retention import RetentionManager
from .prpc.client import PRpcClient
from .store.snapshot_store import SnapshotStore
from .sync.aggregator import AggregationSettings
from .sync.collector import FanOutCollector
from .sync.orchestrator import SyncOrchestrator
from .utils.logging import get_logger

logger = get_logger("context")


@dataclass
class AppContext:
    config: PNodeMonitorConfig
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    store: SnapshotStore
    http_client: httpx.AsyncClient
    prpc_client: PRpcClient
    collector: FanOutCollector
    retention: RetentionManager
    orchestrator: SyncOrchestrator
    data_source: PNodeDataSource
    settings: AggregationSettings

    @classmethod
    def build(
        cls,
        config: PNodeMonitorConfig,
        engine: Optional[AsyncEngine] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "AppContext":
        """Wire the full object graph from configuration.

        ``engine`` and ``http_client`` may be supplied to share or fake them;
        the context disposes of whatever it is given on ``close()``.
        """
        engine = engine or build_engine(config)
        session_factory = build_session_factory(engine)
        http_client = http_client or httpx.AsyncClient(timeout=config.prpc_timeout_seconds)
        settings = AggregationSettings.from_config(config)
        store = SnapshotStore(session_factory)
        prpc_client = PRpcClient(
            port=config.prpc_port,
            path=config.prpc_path,
            timeout=config.prpc_timeout_seconds,
            http_client=http_client,
        )
        collector = FanOutCollector(prpc_client)
        retention = RetentionManager(store=store, config=config)
        orchestrator = SyncOrchestrator(
            roster=config.node_roster,
            collector=collector,
            store=store,
            settings=settings,
            retention=retention,
        )
        data_source = build_data_source(config, store, collector, settings)
        logger.info(
            "app_context_built",
            roster_size=len(config.node_roster),
            data_source=data_source.name,
        )
        return cls(
            config=config,
            engine=engine,
            session_factory=session_factory,
            store=store,
            http_client=http_client,
            prpc_client=prpc_client,
            collector=collector,
            retention=retention,
            orchestrator=orchestrator,
            data_source=data_source,
            settings=settings,
        )

    async def close(self) -> None:
        await self.http_client.aclose()
        await self.engine.dispose()
        logger.info("app_context_closed")
