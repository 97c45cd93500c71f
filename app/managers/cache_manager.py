# app/managers/cache_manager.py
"""Process-scoped cache manager wrapping the in-memory TTL client."""

from collections.abc import Awaitable, Callable, Mapping
from logging import DEBUG, getLogger
from typing import Any

from app.clients.memory_client import MemoryClient
from app.clients.protocols import CacheClientProtocol
from app.configs import CacheConfig, file_logger
from app.data import CacheStatistics

logger = file_logger(getLogger(__name__))

# Key namespaces
BLOGS_PREFIX = "blogs:"
USERS_PREFIX = "users:"
USER_COUNT_KEY = "users:total"


class CacheManager:
    """
    Owns the process-wide cache and the statistics kept about it.

    Lifecycle:
        - created at import time as the ``cache_manager`` singleton
        - ``initialize`` starts the periodic sweep from the app lifespan
        - ``shutdown`` stops the sweep; nothing survives a restart

    Call sites only use ``get``/``set``/``delete``/``invalidate_pattern``,
    so ``client`` can be swapped for any ``CacheClientProtocol``.
    """

    def __init__(self, client: CacheClientProtocol | None = None) -> None:
        """Initialize cache manager."""
        self.cache_config = CacheConfig()
        self.memory_client = MemoryClient(
            max_size=self.cache_config.max_size,
            default_ttl=self.cache_config.default_ttl,
            cleanup_interval=self.cache_config.cleanup_interval,
        )
        self._client: CacheClientProtocol = client or self.memory_client
        self.statistics = CacheStatistics()

    async def initialize(self) -> None:
        """Start the background sweep of expired entries."""
        await self.memory_client.start_lifecycle()
        logger.info("Cache manager initialized successfully.")

    async def shutdown(self) -> None:
        """Stop the background sweep."""
        await self.memory_client.close()
        logger.info("Cache manager shutdown successfully.")

    def get(self, key: str) -> Any | None:
        """Get value from cache."""
        value = self._client.get(key)
        if value is None:
            self.statistics.record_miss()
            return None
        if logger.isEnabledFor(DEBUG):
            logger.debug("Cache hit: %s", key)
        self.statistics.record_hit()
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set value in cache."""
        self._client.set(key, value, ttl if ttl is not None else self.cache_config.default_ttl)
        self.statistics.record_set()

    def delete(self, key: str) -> bool:
        """Delete a key from cache."""
        deleted = self._client.delete(key)
        if deleted:
            self.statistics.record_delete()
        return deleted

    def invalidate_pattern(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``."""
        removed = self._client.invalidate_pattern(prefix)
        self.statistics.record_invalidation(prefix, removed)
        logger.info(f"Invalidated {removed} cache keys with prefix '{prefix}'")
        return removed

    def clear(self) -> int:
        """Drop every entry and return how many there were."""
        size = self._client.stats()["size"]
        self._client.clear()
        self.statistics.record_delete(size)
        logger.info(f"Cache cleared ({size} keys)")
        return size

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any:
        """
        Return the cached value for ``key`` or load, store and return it.

        ``None`` results are not cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        if value is not None:
            self.set(key, value, ttl)
        return value

    @staticmethod
    def key(prefix: str, params: Mapping[str, Any]) -> str:
        return MemoryClient.generate_key(prefix, params)

    def stats(self) -> dict[str, Any]:
        """Size information merged with hit/miss statistics."""
        return self._client.stats() | self.statistics.to_dict()


cache_manager = CacheManager()
