"""Network routes: latest network-wide aggregate."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...datasources import PNodeDataSource
from ...dependencies import get_data_source

router = APIRouter(prefix="/network", tags=["network"])


@router.get("")
async def get_network_stats(data_source: PNodeDataSource = Depends(get_data_source)):
    """Latest network statistics from the configured data source."""
    stats = await data_source.get_network_stats()
    response = {
        "success": True,
        "stats": stats,
        "source": data_source.name,
        "last_updated": stats["created_at"] if stats else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if stats is None:
        response["message"] = "No data available. Run sync first."
    return response
