"""Exceptions raised by the sync pipeline and snapshot store."""


class PNodeMonitorError(Exception):
    """Base class for pNode Monitor errors."""


class SyncStartError(PNodeMonitorError):
    """A sync cycle could not start because its SyncLog row was not created.

    No snapshot or log rows exist for the attempted cycle.
    """

    def __init__(self, message: str, nodes_queried: int = 0):
        super().__init__(message)
        self.nodes_queried = nodes_queried


class SyncLogStateError(PNodeMonitorError):
    """Completion was requested for a SyncLog that is missing or already completed."""

    def __init__(self, log_id: int):
        super().__init__(f"Sync log {log_id} is missing or already completed")
        self.log_id = log_id
