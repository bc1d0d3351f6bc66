"""Persistence layer for snapshots and sync logs."""

from .snapshot_store import SnapshotStore, utcnow

__all__ = ["SnapshotStore", "utcnow"]
