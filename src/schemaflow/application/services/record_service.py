"""Record service: runs record operations through the lifecycle pipeline.

Every mutation fires, in order:

1. ``collection.<op>:before`` filters (generic)
2. ``collection.<op>.<collection>:before`` filters
3. the store operation
4. ``collection.<op>.<collection>:after`` and ``collection.<op>.<collection>`` actions
5. ``collection.<op>:after`` and ``collection.<op>`` actions

A listener that raises stops the operation where it is: a failure in a
before phase means nothing is written and no after listener runs.
"""

from typing import Any, Iterable, Optional, Sequence

from schemaflow.core.hooks import Emitter, RecordEvent, after_events, before_events
from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.payload import Payload
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.persistence.record_store import RecordStore

logger = get_logger(__name__)


class RecordService:
    """Insert, update, delete and select records of any collection."""

    def __init__(self, schema_manager: SchemaManager, emitter: Emitter, store: RecordStore) -> None:
        self.schema_manager = schema_manager
        self.emitter = emitter
        self.store = store

    def _run_before(self, event: str, payload: Payload) -> Payload:
        for name in before_events(event, payload.collection_name):
            payload = self.emitter.apply(name, payload)
        return payload

    def _run_after(self, event: str, collection_name: str, *args: Any) -> None:
        for name in after_events(event, collection_name):
            self.emitter.execute(name, collection_name, *args)

    def insert(self, collection_name: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it with its primary key.

        Raises:
            CollectionNotFound: If the collection does not exist.
            Forbidden: If a lifecycle handler rejects the insert.
        """
        collection = self.schema_manager.get_collection(collection_name)
        payload = self._run_before(
            RecordEvent.INSERT, Payload(dict(data), collection_name=collection.name)
        )

        record_id = self.store.insert(collection.name, payload.data)
        record = dict(payload.data)
        primary_key = collection.primary_key_name
        if primary_key and record.get(primary_key) is None:
            record[primary_key] = record_id

        logger.info("Record inserted", collection=collection.name, record_id=record_id)
        self._run_after(RecordEvent.INSERT, collection.name, record)
        return record

    def update(self, collection_name: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update the record identified by the primary key value in ``data``.

        Raises:
            ValueError: If ``data`` has no primary key value.
        """
        collection = self.schema_manager.get_collection(collection_name)
        primary_key = collection.primary_key_name
        if not primary_key or data.get(primary_key) is None:
            raise ValueError(f"Update of {collection.name} needs a value for its primary key")

        payload = self._run_before(
            RecordEvent.UPDATE, Payload(dict(data), collection_name=collection.name)
        )
        record = dict(payload.data)
        record_id = record.get(primary_key, data[primary_key])
        record[primary_key] = record_id

        self.store.update(collection.name, record_id, record)

        logger.info("Record updated", collection=collection.name, record_id=record_id)
        self._run_after(RecordEvent.UPDATE, collection.name, record)
        return record

    def delete(self, collection_name: str, ids: Iterable[Any]) -> int:
        """Delete records by primary key and return how many were removed."""
        collection = self.schema_manager.get_collection(collection_name)
        payload = self._run_before(
            RecordEvent.DELETE, Payload(list(ids), collection_name=collection.name)
        )
        ids = list(payload.data)

        count = self.store.delete(collection.name, ids)

        logger.info("Records deleted", collection=collection.name, count=count)
        self._run_after(RecordEvent.DELETE, collection.name, ids)
        return count

    def select(
        self,
        collection_name: str,
        columns: Optional[Sequence[str]] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """Select rows, cast them, and run them through the select filters."""
        collection = self.schema_manager.get_collection(collection_name)
        select_state = {"table": collection.name, "columns": columns, "where": where}

        request = self._run_before(
            RecordEvent.SELECT,
            Payload(
                {"columns": list(columns) if columns else None, "where": where},
                collection_name=collection.name,
                selectState=select_state,
            ),
        )
        columns = request.get("columns")
        where = request.get("where")

        rows = self.store.select(collection.name, columns, where)
        rows = self.schema_manager.cast_record_values(rows, collection.fields)

        payload = Payload(rows, collection_name=collection.name, selectState=select_state)
        for name in after_events(RecordEvent.SELECT, collection.name):
            payload = self.emitter.apply(name, payload)

        return payload.data

    def find(self, collection_name: str, record_id: Any) -> Optional[dict[str, Any]]:
        """Select one record by primary key through the select pipeline."""
        primary_key = self.schema_manager.get_primary_key(collection_name)
        rows = self.select(collection_name, where={primary_key: record_id})
        return rows[0] if rows else None
