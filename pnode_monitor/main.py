"""pNode Monitor: sync and read API for storage network pNode statistics.

FastAPI entry point with lifespan management, the scheduled sync loop, and CORS.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api.router import api_router
from .config import PNodeMonitorConfig, get_config
from .context import AppContext
from .database import create_tables
from .dependencies import get_context
from .errors import SyncStartError
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import RequestIDMiddleware
from .utils.logging import get_logger, setup_logging

__version__ = "0.3.0"

logger = get_logger("pnode_monitor.main")


async def _sync_loop(context: AppContext) -> None:
    """Run sync cycles back to back, ``sync_interval_seconds`` apart."""
    interval = context.config.sync_interval_seconds
    if not context.config.sync_on_startup:
        await asyncio.sleep(interval)
    while True:
        try:
            report = await context.orchestrator.run()
            logger.info(
                "scheduled_sync_complete",
                success=report.sync.success,
                nodes_success=report.sync.nodes_success,
                nodes_failed=report.sync.nodes_failed,
            )
        except asyncio.CancelledError:
            break
        except SyncStartError as e:
            logger.error("scheduled_sync_start_failed", error=str(e))
        except Exception as e:
            logger.error("scheduled_sync_error", error=str(e), exc_info=True)
        await asyncio.sleep(interval)


def _start_sync_task(context: AppContext) -> Optional[asyncio.Task]:
    if context.config.sync_interval_seconds <= 0:
        logger.info("scheduled_sync_disabled")
        return None
    return asyncio.create_task(_sync_loop(context), name="scheduled_sync")


def create_app(config: Optional[PNodeMonitorConfig] = None) -> FastAPI:
    """Build the FastAPI application for ``config``."""
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup ---
        logger.info("pnode_monitor_starting", host=config.host, port=config.port)
        if not config.sync_api_key:
            logger.warning("SYNC_API_KEY is not set; POST /api/v1/sync will reject every call")

        context = AppContext.build(config)
        await create_tables(context.engine, config)
        app.state.context = context

        sync_task = _start_sync_task(context)
        logger.info("pnode_monitor_started", app=config.app_name, data_source=context.data_source.name)

        yield

        # --- Shutdown ---
        logger.info("pnode_monitor_shutting_down")
        if sync_task is not None and not sync_task.done():
            sync_task.cancel()
            await asyncio.wait([sync_task], timeout=3.0)
        app.state.context = None
        await context.close()
        logger.info("pnode_monitor_stopped")

    app = FastAPI(
        title=config.app_name,
        description="Sync and read API for storage network pNode statistics",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = None

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in config.cors_origins.split(",") if o.strip()],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key", "X-Request-ID"],
    )
    # Added last so it runs first
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {"name": config.app_name, "version": __version__, "status": "operational"}

    @app.get("/health")
    async def health(context: AppContext = Depends(get_context)):
        """Service health: database reachability and the configured roster."""
        database = "ok"
        try:
            async with context.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("health_database_unreachable", error=str(e))
            database = "unreachable"
        return {
            "status": "healthy" if database == "ok" else "degraded",
            "data_source": context.data_source.name,
            "roster_size": len(context.config.node_roster),
            "database": database,
        }

    return app


def main():
    """Run the pNode Monitor server."""
    config = get_config()
    setup_logging(
        debug=config.debug,
        log_dir=config.log_dir,
        log_max_bytes=config.log_max_bytes,
        log_backup_count=config.log_backup_count,
    )
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
