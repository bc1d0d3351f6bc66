"""Network-wide aggregate snapshot, one row per sync cycle with at least one response."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class NetworkStatsSnapshot(Base):
    __tablename__ = "network_stats_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total_pnodes: Mapped[int] = mapped_column(Integer, nullable=False)
    active_pnodes: Mapped[int] = mapped_column(Integer, nullable=False)
    total_storage: Mapped[int] = mapped_column(BigInteger, nullable=False)
    used_storage: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_shards: Mapped[int] = mapped_column(BigInteger, nullable=False)
    available_shards: Mapped[int] = mapped_column(BigInteger, nullable=False)
    average_uptime: Mapped[float] = mapped_column(Float, nullable=False)
    average_latency: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def to_dict(self) -> dict:
        return {
            "total_pnodes": self.total_pnodes,
            "active_pnodes": self.active_pnodes,
            "total_storage": self.total_storage,
            "used_storage": self.used_storage,
            "total_shards": self.total_shards,
            "available_shards": self.available_shards,
            "average_uptime": self.average_uptime,
            "average_latency": self.average_latency,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
