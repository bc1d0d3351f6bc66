"""SQLAlchemy models package."""

from .base import Base
from .network_snapshot import NetworkStatsSnapshot
from .node_snapshot import NodeStatsSnapshot
from .sync_log import SyncLog

__all__ = [
    "Base",
    "NetworkStatsSnapshot",
    "NodeStatsSnapshot",
    "SyncLog",
]
