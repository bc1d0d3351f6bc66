"""Master API router: includes all sub-routers."""

from fastapi import APIRouter

from .routes.network import router as network_router
from .routes.pnodes import router as pnodes_router
from .routes.sync import router as sync_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(sync_router)
api_router.include_router(pnodes_router)
api_router.include_router(network_router)
