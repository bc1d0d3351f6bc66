"""pNode routes: latest per-node statistics and single-node live lookups."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from ...config import PNodeMonitorConfig
from ...context import AppContext
from ...datasources import PNodeDataSource
from ...dependencies import get_app_config, get_context, get_data_source

router = APIRouter(prefix="/pnodes", tags=["pnodes"])

NO_DATA_MESSAGE = "No data available. Run sync first."


def _require_roster_member(ip: str, config: PNodeMonitorConfig) -> None:
    if ip not in config.node_roster:
        raise HTTPException(status_code=400, detail="Invalid pNode IP address")


@router.get("")
async def list_pnodes(data_source: PNodeDataSource = Depends(get_data_source)):
    """Latest statistics for every responding pNode."""
    pnodes = await data_source.list_pnodes()
    response = {
        "success": True,
        "total": len(pnodes),
        "pnodes": pnodes,
        "source": data_source.name,
        "last_updated": pnodes[0]["created_at"] if pnodes else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if not pnodes:
        response["message"] = NO_DATA_MESSAGE
    return response


@router.get("/{ip}")
async def get_pnode(
    ip: str,
    data_source: PNodeDataSource = Depends(get_data_source),
    config: PNodeMonitorConfig = Depends(get_app_config),
):
    """Latest statistics for one roster node. 404 outside the roster or without data."""
    if ip not in config.node_roster:
        raise HTTPException(status_code=404, detail=f"pNode {ip} is not in the roster")
    pnode = await data_source.get_pnode(ip)
    if pnode is None:
        raise HTTPException(status_code=404, detail=f"No data for pNode {ip}")
    return {"success": True, "pnode": pnode, "source": data_source.name}


@router.get("/{ip}/stats")
async def get_live_stats(ip: str, context: AppContext = Depends(get_context)):
    """Query one roster node over pRPC right now, bypassing stored data."""
    _require_roster_member(ip, context.config)
    result = await context.prpc_client.fetch_stats(ip)
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Failed to fetch pNode stats: {result.error}")
    return {"success": True, "ip": ip, "stats": result.stats.model_dump()}
