"""Tag-addressed cache: tag functions, the pool contract and an in-memory pool."""

from schemaflow.infrastructure.cache.tagged_cache import CachePool, TaggedCache
from schemaflow.infrastructure.cache.tags import entity_tag, permissions_tag, table_tag

__all__ = [
    "CachePool",
    "TaggedCache",
    "entity_tag",
    "permissions_tag",
    "table_tag",
]
