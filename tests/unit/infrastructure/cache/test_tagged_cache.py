"""Unit tests for TaggedCache and cache tags."""

import time

from schemaflow.infrastructure.cache import (
    CachePool,
    TaggedCache,
    entity_tag,
    permissions_tag,
    table_tag,
)


class TestTags:
    """Tests for tag construction."""

    def test_tags(self) -> None:
        """Test the tag formats."""
        assert entity_tag("articles", 42) == "entity_articles_42"
        assert table_tag("articles") == "table_articles"
        assert permissions_tag("articles", 3) == "permissions_collection_articles_group_3"


class TestTaggedCache:
    """Test suite for TaggedCache."""

    def test_cache_initialization(self):
        """Test cache initializes with correct TTL."""
        cache = TaggedCache(ttl_seconds=300)
        assert cache.ttl_seconds == 300
        assert cache.size() == 0
        assert isinstance(cache, CachePool)

    def test_cache_set_and_get(self):
        """Test storing and retrieving from cache."""
        cache = TaggedCache()
        cache.set("articles:1", {"id": 1}, tags=["entity_articles_1"])

        assert cache.get("articles:1") == {"id": 1}
        assert cache.get("articles:2") is None

    def test_cache_expiration(self):
        """Test cache entries expire after TTL."""
        cache = TaggedCache(ttl_seconds=300)
        cache.set("articles:1", {"id": 1}, ttl_seconds=0)

        time.sleep(0.01)

        assert cache.get("articles:1") is None
        assert cache.size() == 0

    def test_invalidate_tags(self):
        """Test that only entries carrying an invalidated tag are evicted."""
        cache = TaggedCache()
        cache.set("one", 1, tags=["entity_articles_1", "table_articles"])
        cache.set("two", 2, tags=["entity_articles_2", "table_articles"])
        cache.set("other", 3, tags=["table_pages"])

        assert cache.invalidate_tags(["entity_articles_1"]) == 1
        assert cache.get("one") is None
        assert cache.get("two") == 2

        assert cache.invalidate_tags(["table_articles"]) == 1
        assert cache.get("other") == 3

    def test_invalidate_unknown_tag(self):
        """Test that unknown tags evict nothing."""
        assert TaggedCache().invalidate_tags(["nope"]) == 0

    def test_overwrite_replaces_tags(self):
        """Test that setting a key again drops its old tags."""
        cache = TaggedCache()
        cache.set("key", 1, tags=["old"])
        cache.set("key", 2, tags=["new"])

        assert cache.invalidate_tags(["old"]) == 0
        assert cache.get("key") == 2

    def test_delete_clear_and_cleanup(self):
        """Test manual eviction helpers."""
        cache = TaggedCache()
        cache.set("a", 1)
        cache.set("b", 2, ttl_seconds=0)

        time.sleep(0.01)

        assert cache.cleanup_expired() == 1
        assert cache.delete("a") is True
        assert cache.delete("a") is False

        cache.set("c", 3)
        cache.clear()
        assert cache.size() == 0
