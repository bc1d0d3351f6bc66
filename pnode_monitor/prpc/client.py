"""pRPC client: a single bounded ``get-stats`` exchange with one pNode."""

from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from ..utils.logging import get_logger
from .schemas import NodeStats, RpcResponse, stats_request

logger = get_logger("prpc.client")


@dataclass(frozen=True)
class NodeStatsResult:
    """Outcome of one pRPC call. ``stats`` is None when the node was unavailable."""

    address: str
    stats: Optional[NodeStats] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.stats is not None

    @classmethod
    def unavailable(cls, address: str, reason: str) -> "NodeStatsResult":
        return cls(address=address, stats=None, error=reason)


class PRpcClient:
    """Fetches node statistics over JSON-RPC on the pRPC port.

    Makes exactly one attempt per call and never raises for node-level
    problems: timeouts, connection errors, bad status codes, malformed JSON
    and RPC error objects all come back as an unavailable result.
    """

    def __init__(
        self,
        port: int = 6000,
        path: str = "/rpc",
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.port = port
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def url_for(self, address: str) -> str:
        host = f"[{address}]" if ":" in address else address
        return f"http://{host}:{self.port}{self.path}"

    async def fetch_stats(self, address: str) -> NodeStatsResult:
        """Send one ``get-stats`` request to ``address`` and wait up to ``timeout``."""
        try:
            response = await self._client.post(
                self.url_for(address),
                json=stats_request(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            logger.warning("prpc_node_timeout", address=address, timeout=self.timeout)
            return NodeStatsResult.unavailable(address, "timeout")
        except httpx.HTTPError as exc:
            logger.warning("prpc_node_unreachable", address=address, error=str(exc))
            return NodeStatsResult.unavailable(address, f"unreachable: {exc.__class__.__name__}")

        if not response.is_success:
            logger.warning("prpc_node_bad_status", address=address, status=response.status_code)
            return NodeStatsResult.unavailable(address, f"HTTP {response.status_code}")

        try:
            envelope = RpcResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning("prpc_node_malformed_response", address=address, errors=exc.error_count())
            return NodeStatsResult.unavailable(address, "malformed response")

        if envelope.error is not None:
            logger.warning(
                "prpc_node_rpc_error",
                address=address,
                code=envelope.error.code,
                message=envelope.error.message,
            )
            return NodeStatsResult.unavailable(address, f"rpc error {envelope.error.code}")

        if envelope.result is None:
            return NodeStatsResult.unavailable(address, "empty result")

        return NodeStatsResult(address=address, stats=envelope.result)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
