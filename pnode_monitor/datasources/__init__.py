"""Read-side data sources, selected by the ``data_source`` setting."""

from .base import PNodeDataSource, pnode_view
from .database import DatabaseDataSource
from .live import LiveDataSource


def build_data_source(config, store, collector, settings) -> PNodeDataSource:
    """Create the data source named by ``config.data_source``."""
    if config.data_source == "prpc":
        return LiveDataSource(
            roster=config.node_roster,
            collector=collector,
            settings=settings,
            cache_ttl=config.live_cache_ttl_seconds,
        )
    return DatabaseDataSource(store=store, settings=settings)


__all__ = [
    "DatabaseDataSource",
    "LiveDataSource",
    "PNodeDataSource",
    "build_data_source",
    "pnode_view",
]
