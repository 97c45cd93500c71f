"""Process-wide in-memory TTL cache."""

from asyncio import CancelledError, Task, create_task
from asyncio import sleep as asyncio_sleep
from collections import OrderedDict
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass
from logging import DEBUG, getLogger
from time import time
from typing import Any

from app.configs import file_logger

logger = file_logger(getLogger(__name__))


@dataclass(slots=True)
class CacheEntry:
    """A cached value and its absolute expiry (epoch seconds)."""

    data: Any
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        return (now if now is not None else time()) > self.expires_at


class MemoryClient:
    """
    A bounded key/value map with per-entry expiry.

    Features:
        - Lazy expiration on ``get``
        - Active expiration via a background sweep task
        - Oldest-insertion eviction once ``max_size`` entries are held
        - Prefix invalidation

    No operation awaits, so reads and writes from concurrent requests cannot
    interleave inside a single call and no lock is held.
    """

    DEFAULT_MAX_SIZE: int = 200
    DEFAULT_TTL: int = 300  # seconds
    DEFAULT_CLEANUP_INTERVAL: int = 300  # seconds

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: int = DEFAULT_TTL,
        cleanup_interval: int = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        """
        Initialize the MemoryClient with configurable limits.

        Args:
            max_size: Maximum number of entries before the oldest is evicted.
            default_ttl: TTL in seconds used when ``set`` is called without one.
            cleanup_interval: Interval in seconds for the background sweep.
        """
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._cleanup_interval = cleanup_interval
        self._cleanup_task: Task[None] | None = None
        self.is_running: bool = False
        self.evictions: int = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    async def start_lifecycle(self) -> None:
        """Start background maintenance tasks."""
        if not self._cleanup_task:
            self.is_running = True
            self._cleanup_task = create_task(self._cleanup_loop())
            logger.info("MemoryClient active expiration task started.")

    async def _cleanup_loop(self) -> None:
        """Background loop to remove expired keys."""
        while self.is_running:
            try:
                await asyncio_sleep(self._cleanup_interval)
                self.cleanup()
            except CancelledError:
                break
            except Exception:
                logger.exception("Error in memory cleanup loop")

    def cleanup(self) -> int:
        """Remove every expired entry, returning how many were dropped."""
        now = time()
        expired = [key for key, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired:
            del self._cache[key]
        if expired and logger.isEnabledFor(DEBUG):
            logger.debug("Memory cleanup: removed %d expired keys.", len(expired))
        return len(expired)

    def _evict_oldest(self) -> None:
        if self._cache:
            self._cache.popitem(last=False)
            self.evictions += 1

    def get(self, key: str) -> Any | None:
        """Return the live value for ``key``, dropping it if it has expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[key]
            return None
        return entry.data

    def set(self, key: str, data: Any, ttl: int | None = None) -> None:
        """Store ``data`` under ``key`` for ``ttl`` seconds, overwriting any entry."""
        if key not in self._cache and len(self._cache) >= self._max_size:
            self._evict_oldest()
        seconds = self._default_ttl if ttl is None else ttl
        self._cache[key] = CacheEntry(data=data, expires_at=time() + seconds)

    def delete(self, key: str) -> bool:
        """Delete a key from the cache."""
        return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear the entire cache."""
        self._cache.clear()

    def invalidate_pattern(self, prefix: str) -> int:
        """Delete every key starting with ``prefix`` and return the count."""
        keys = [key for key in self._cache if key.startswith(prefix)]
        for key in keys:
            del self._cache[key]
        return len(keys)

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._cache),
            "maxSize": self._max_size,
            "keys": list(self._cache.keys()),
        }

    @staticmethod
    def generate_key(prefix: str, params: Mapping[str, Any]) -> str:
        """
        Build a deterministic key from a prefix and request parameters.

        >>> MemoryClient.generate_key("blogs:list", {"page": 2, "limit": 10})
        'blogs:list:limit:10|page:2'
        """
        parts = "|".join(f"{name}:{_key_part(params[name])}" for name in sorted(params))
        return f"{prefix}:{parts}"

    async def close(self) -> None:
        """Stop the client and cleanup tasks."""
        self.is_running = False
        if self._cleanup_task:
            self._cleanup_task.cancel()
            with suppress(CancelledError):
                await self._cleanup_task
            self._cleanup_task = None


def _key_part(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
