"""TTL Cache: one computed value held for a fixed number of seconds."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional


class TTLCache:
    """Single-slot cache for a whole roster poll.

    Dashboard reads within ``ttl`` seconds share one fan-out instead of each
    polling every node. A ``ttl`` of zero disables caching.
    """

    def __init__(self, ttl: float = 30.0):
        self._ttl = ttl
        self._value: Optional[Any] = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def get(self) -> Any | None:
        """Return the cached value if it hasn't expired."""
        if self._value is None or time.monotonic() >= self._expires_at:
            self._value = None
            return None
        return self._value

    def set(self, value: Any) -> None:
        self._value = value
        self._expires_at = time.monotonic() + self._ttl

    async def get_or_compute(self, compute_fn: Callable[[], Awaitable[Any]]) -> Any:
        """Get the cached value or compute it if missing/expired.

        Uses an asyncio lock so concurrent callers wait on one computation.
        """
        cached = self.get()
        if cached is not None:
            return cached

        async with self._lock:
            # Double-check after acquiring lock
            cached = self.get()
            if cached is not None:
                return cached

            value = await compute_fn()
            self.set(value)
            return value
