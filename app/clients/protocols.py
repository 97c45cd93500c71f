"""Protocol definitions for cache client implementations."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheClientProtocol(Protocol):
    """
    The narrow interface call sites use to reach the cache.

    ``MemoryClient`` conforms to it; a distributed backend only has to
    provide the same five operations.
    """

    def get(self, key: str) -> Any | None:
        """Get a live value from the cache."""
        ...

    def set(self, key: str, data: Any, ttl: int | None = None) -> None:
        """Set a value in the cache with optional TTL."""
        ...

    def delete(self, key: str) -> bool:
        """Delete one key from the cache."""
        ...

    def invalidate_pattern(self, prefix: str) -> int:
        """Delete every key with the given prefix."""
        ...

    def clear(self) -> None:
        """Clear all entries from the cache."""
        ...

    def stats(self) -> dict[str, Any]:
        """Return size information about the cache."""
        ...
