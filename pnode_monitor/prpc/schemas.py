"""pRPC wire models: the JSON-RPC envelope and the ``get-stats`` payload.

Field names are the node's wire contract and must not be renamed.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

STATS_METHOD = "get-stats"

# Upper bounds of the BigInteger and Integer columns these values land in
MAX_COUNTER = 2**63 - 1
MAX_STREAMS = 2**31 - 1


class NodeStats(BaseModel):
    """Statistics reported by one pNode."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    active_streams: int = Field(ge=0, le=MAX_STREAMS)
    cpu_percent: float = Field(ge=0)
    current_index: int = Field(ge=0, le=MAX_COUNTER)
    file_size: int = Field(ge=0, le=MAX_COUNTER)  # bytes
    last_updated: int = Field(ge=0, le=MAX_COUNTER)  # epoch seconds
    packets_received: int = Field(ge=0, le=MAX_COUNTER)
    packets_sent: int = Field(ge=0, le=MAX_COUNTER)
    ram_total: int = Field(ge=0, le=MAX_COUNTER)
    ram_used: int = Field(ge=0, le=MAX_COUNTER)
    total_bytes: int = Field(ge=0, le=MAX_COUNTER)
    total_pages: int = Field(ge=0, le=MAX_COUNTER)
    uptime: int = Field(ge=0, le=MAX_COUNTER)  # seconds


class RpcError(BaseModel):
    code: int
    message: str = ""


class RpcResponse(BaseModel):
    """JSON-RPC 2.0 response envelope."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = "2.0"
    id: Optional[Any] = None
    result: Optional[NodeStats] = None
    error: Optional[RpcError] = None


def stats_request(request_id: int = 1) -> dict:
    """Build the JSON-RPC request body for ``get-stats``."""
    return {"jsonrpc": "2.0", "method": STATS_METHOD, "id": request_id}
