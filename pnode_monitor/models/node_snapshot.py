"""Per-node statistics snapshot, one row per responding pNode per sync cycle."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class NodeStatsSnapshot(Base):
    __tablename__ = "pnode_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    # Counters can exceed 2^53, so no Float here
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_used: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_capacity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ram_used: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ram_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    uptime_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, index=True)
    packets_received: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    packets_sent: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_updated: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    cpu_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    active_streams: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def to_dict(self) -> dict:
        return {
            "ip_address": self.ip_address,
            "status": self.status,
            "file_size": self.file_size,
            "storage_used": self.storage_used,
            "storage_capacity": self.storage_capacity,
            "ram_used": self.ram_used,
            "ram_total": self.ram_total,
            "uptime_seconds": self.uptime_seconds,
            "packets_received": self.packets_received,
            "packets_sent": self.packets_sent,
            "last_updated": self.last_updated,
            "cpu_percent": self.cpu_percent,
            "active_streams": self.active_streams,
            "region": self.region,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
