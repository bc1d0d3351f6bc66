"""pRPC statistics protocol: wire models and client."""

from .client import NodeStatsResult, PRpcClient
from .schemas import NodeStats

__all__ = ["NodeStats", "NodeStatsResult", "PRpcClient"]
