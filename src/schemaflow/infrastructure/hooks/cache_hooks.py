"""Cache invalidation driven by lifecycle events.

Listens only to ``:after`` events, so a mutation that fails in its
``:before`` phase or in the store never invalidates anything.
"""

from typing import Any, Iterable

from schemaflow.core.hooks import Emitter, RecordEvent, SchemaEvent, after
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.schema_manager import SchemaManager, SystemCollections
from schemaflow.infrastructure.cache.tagged_cache import CachePool
from schemaflow.infrastructure.cache.tags import entity_tag, permissions_tag, table_tag
from schemaflow.infrastructure.persistence.record_store import RecordStore

logger = get_logger(__name__)


class CacheTagInvalidator:
    """Invalidate cache tags when records, collections or permissions change.

    - record update: ``entity_<collection>_<id>``
    - collection update or drop: ``table_<collection>``
    - record delete: ``entity_<collection>_<id>`` for every deleted id
    - permission update: ``permissions_collection_<collection>_group_<group>``,
      read back from the updated permission row
    """

    def __init__(self, cache: CachePool, schema_manager: SchemaManager, store: RecordStore) -> None:
        self.cache = cache
        self.schema_manager = schema_manager
        self.store = store

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_action(after(RecordEvent.UPDATE), self.on_record_update),
            emitter.add_action(after(SchemaEvent.UPDATE), self.on_table_change),
            emitter.add_action(after(SchemaEvent.DROP), self.on_table_change),
            emitter.add_action(after(RecordEvent.DELETE), self.on_record_delete),
            emitter.add_action(
                after(RecordEvent.UPDATE, SystemCollections.PERMISSIONS), self.on_permission_update
            ),
        ]

    def invalidate(self, tags: list[str]) -> None:
        logger.debug("Invalidating cache tags", tags=tags)
        self.cache.invalidate_tags(tags)

    def on_record_update(self, collection_name: str, record: dict[str, Any]) -> None:
        primary_key = self.schema_manager.get_primary_key(collection_name)
        if primary_key and record.get(primary_key) is not None:
            self.invalidate([entity_tag(collection_name, record[primary_key])])

    def on_table_change(self, collection_name: str) -> None:
        self.invalidate([table_tag(collection_name)])

    def on_record_delete(self, collection_name: str, ids: Iterable[Any]) -> None:
        for record_id in ids:
            self.invalidate([entity_tag(collection_name, record_id)])

    def on_permission_update(self, collection_name: str, record: dict[str, Any]) -> None:
        permission = self.store.find(SystemCollections.PERMISSIONS, record.get("id"))
        if permission is None:
            logger.warning("Updated permission row not found", permission_id=record.get("id"))
            return
        self.invalidate([permissions_tag(permission["collection"], permission["group"])])
