"""Counters kept by the cache manager and reported by ``GET /cache/stats``."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from app.utils import today_str


@dataclass
class CacheStatistics:
    """
    Hit, miss and write counters for the process-wide cache.

    Prefix invalidations are also broken down per prefix (``blogs:``,
    ``users:``) so the stats endpoint shows which writes churn the cache.
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    invalidations: int = 0
    invalidated_by_prefix: Counter[str] = field(default_factory=Counter)
    created_at: str = field(default_factory=today_str)
    last_updated_at: str = field(default_factory=today_str)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def _touch(self) -> None:
        self.last_updated_at = today_str()

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1
            self._touch()

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1
            self._touch()

    def record_set(self) -> None:
        with self._lock:
            self.sets += 1
            self._touch()

    def record_delete(self, count: int = 1) -> None:
        """Record keys removed by delete or clear."""
        with self._lock:
            self.deletes += count
            self._touch()

    def record_invalidation(self, prefix: str, count: int) -> None:
        """Record ``count`` keys removed by invalidating ``prefix``."""
        with self._lock:
            self.invalidations += count
            self.invalidated_by_prefix[prefix] += count
            self._touch()

    @property
    def hit_rate(self) -> float:
        """Hits as a percentage (0-100) of all lookups."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict[str, object]:
        """camelCase snapshot merged into the cache stats payload."""
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "sets": self.sets,
                "deletes": self.deletes,
                "invalidations": self.invalidations,
                "invalidatedByPrefix": dict(self.invalidated_by_prefix),
                "hitRate": f"{self.hit_rate:.2f}%",
                "createdAt": self.created_at,
                "lastUpdatedAt": self.last_updated_at,
            }
