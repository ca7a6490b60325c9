"""Tag-addressed cache with TTL support.

The record pipeline only needs ``invalidate_tags``; ``TaggedCache`` is the
in-memory reference pool that also lets callers store tagged entries.
Thread-safe implementation for concurrent access.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

from schemaflow.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class CachePool(Protocol):
    """Tag invalidation contract of the cache backend."""

    def invalidate_tags(self, tags: Iterable[str]) -> Any:
        ...


@dataclass
class CacheEntry:
    """Cache entry with TTL and tags.

    Attributes:
        value: The cached value.
        expires_at: Unix timestamp when this entry expires.
        tags: Tags the entry is evicted by.
    """

    value: Any
    expires_at: float
    tags: frozenset[str] = field(default_factory=frozenset)


class TaggedCache:
    """Thread-safe TTL cache whose entries can be evicted by tag.

    Example:
        cache = TaggedCache(ttl_seconds=60)
        cache.set("articles:42", row, tags=["entity_articles_42", "table_articles"])
        cache.invalidate_tags(["entity_articles_42"])
        cache.get("articles:42")  # None
    """

    def __init__(self, ttl_seconds: int = 300):
        """Initialize the cache.

        Args:
            ttl_seconds: Time-to-live for cache entries in seconds (default: 5 minutes).
        """
        self.ttl_seconds = ttl_seconds
        self._cache: dict[str, CacheEntry] = {}
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if time.time() > entry.expires_at:
                self._remove(key)
                return None

            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        tags: Iterable[str] = (),
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """Store a value under ``key`` associated with ``tags``."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(value=value, expires_at=time.time() + ttl, tags=frozenset(tags))

        with self._lock:
            self._remove(key)
            self._cache[key] = entry
            for tag in entry.tags:
                self._tags.setdefault(tag, set()).add(key)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Evict every entry associated with any of ``tags``.

        Returns:
            Number of entries removed.
        """
        tags = list(tags)
        with self._lock:
            keys: set[str] = set()
            for tag in tags:
                keys.update(self._tags.get(tag, ()))
            for key in keys:
                self._remove(key)

        logger.debug("Cache tags invalidated", tags=tags, evicted=len(keys))
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._tags.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries from cache.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = time.time()
            expired = [key for key, entry in self._cache.items() if now > entry.expires_at]
            for key in expired:
                self._remove(key)
            return len(expired)

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def _remove(self, key: str) -> bool:
        entry = self._cache.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            keys = self._tags.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tags[tag]
        return True
