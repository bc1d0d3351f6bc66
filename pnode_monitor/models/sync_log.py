"""SyncLog model: bookkeeping row for every sync cycle invocation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SyncLog(Base):
    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    nodes_queried: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nodes_success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nodes_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "nodes_queried": self.nodes_queried,
            "nodes_success": self.nodes_success,
            "nodes_failed": self.nodes_failed,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }
