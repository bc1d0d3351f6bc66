"""FastAPI dependency providers."""

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from .config import PNodeMonitorConfig
from .context import AppContext
from .datasources import PNodeDataSource
from .store.snapshot_store import SnapshotStore
from .sync.orchestrator import SyncOrchestrator
from .utils.logging import get_logger

_dep_logger = get_logger("dependencies")


def get_context(request: Request) -> AppContext:
    """The AppContext built by the lifespan (or installed by tests)."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return context


def get_app_config(context: AppContext = Depends(get_context)) -> PNodeMonitorConfig:
    return context.config


def get_store(context: AppContext = Depends(get_context)) -> SnapshotStore:
    return context.store


def get_data_source(context: AppContext = Depends(get_context)) -> PNodeDataSource:
    return context.data_source


def get_orchestrator(context: AppContext = Depends(get_context)) -> SyncOrchestrator:
    return context.orchestrator


async def require_sync_api_key(
    x_api_key: Optional[str] = Header(default=None),
    config: PNodeMonitorConfig = Depends(get_app_config),
) -> None:
    """Reject sync triggers that do not carry the shared ``SYNC_API_KEY``."""
    expected = config.sync_api_key
    if not expected or not x_api_key or not hmac.compare_digest(
        x_api_key.encode("utf-8"), expected.encode("utf-8")
    ):
        _dep_logger.warning("sync_api_key_rejected", provided=x_api_key is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid API key",
        )
