"""Collection service: creates, alters and drops collections.

Builds the DDL from field descriptions, executes it through the schema
source, keeps the ``core_collections`` / ``core_fields`` metadata in sync
and fires the ``table.*`` events around each change.
"""

import json
from typing import Any, Iterable, Optional

from schemaflow.core.exceptions import AdapterExecutionFailure, InvalidSchemaDescription
from schemaflow.core.hooks import Emitter, SchemaEvent, after, before
from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.collection import Collection
from schemaflow.domain.entities.payload import Payload
from schemaflow.domain.services.data_types import DataTypes
from schemaflow.domain.services.schema_manager import SchemaManager, SystemCollections
from schemaflow.infrastructure.persistence.record_store import RecordStore
from schemaflow.infrastructure.persistence.table_builder import TableBuilder

logger = get_logger(__name__)

COLLECTION_FLAGS = ("managed", "hidden", "single", "translation", "note", "icon")


def field_metadata_row(collection: str, description: dict[str, Any]) -> dict[str, Any]:
    """Convert a field description to a ``core_fields`` row."""
    options = description.get("options")
    if options is not None and not isinstance(options, str):
        options = json.dumps(options)
    length = description.get("length")
    if isinstance(length, (list, tuple)):
        length = ",".join(str(item) for item in length)
    return {
        "collection": collection,
        "field": description["field"],
        "type": DataTypes.normalize(description["type"]),
        "interface": description["interface"],
        "options": options,
        "length": None if length is None else str(length),
        "required": bool(description.get("required", False)),
        "sort": description.get("sort"),
        "note": description.get("note"),
    }


def _physical(descriptions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Descriptions that need a column; alias fields only exist as metadata."""
    return [
        item for item in descriptions
        if DataTypes.normalize(item.get("type")) != DataTypes.TYPE_ALIAS
    ]


class CollectionService:
    """Schema changes for user collections."""

    def __init__(
        self,
        schema_manager: SchemaManager,
        table_builder: TableBuilder,
        emitter: Emitter,
        store: RecordStore,
    ) -> None:
        self.schema_manager = schema_manager
        self.table_builder = table_builder
        self.emitter = emitter
        self.store = store

    def _validate(self, *description_lists: Iterable[dict[str, Any]]) -> None:
        violations = []
        for descriptions in description_lists:
            violations += self.table_builder.collect_violations(descriptions)
        if violations:
            raise InvalidSchemaDescription(violations)

    def _fire_after(self, event: str, name: str) -> None:
        for event_name in (after(event), event):
            self.emitter.execute(event_name, name)

    def _forget(self, name: str) -> None:
        self.schema_manager.forget_collection(name)
        self.store.forget(name)

    def create_collection(
        self,
        name: str,
        fields: list[dict[str, Any]],
        **flags: Any,
    ) -> Collection:
        """Create the table and its metadata.

        Args:
            name: Collection (table) name.
            fields: Field descriptions.
            **flags: Collection metadata (``hidden``, ``single``, ``note``, ``icon``...).

        Raises:
            InvalidSchemaDescription: If any description is invalid.
            AdapterExecutionFailure: If the database rejects the table or its
                metadata. A table created before a metadata write failed is
                dropped again.
        """
        payload = self.emitter.apply(
            before(SchemaEvent.CREATE), Payload(list(fields), collection_name=name)
        )
        descriptions = list(payload.data)
        self._validate(descriptions)

        statement = self.table_builder.create_table(name, _physical(descriptions))
        self.table_builder.build_table(statement)

        metadata = {key: value for key, value in flags.items() if key in COLLECTION_FLAGS}
        if isinstance(metadata.get("translation"), (dict, list)):
            metadata["translation"] = json.dumps(metadata["translation"])
        try:
            self.store.insert(SystemCollections.COLLECTIONS, {"collection": name, "managed": True, **metadata})
            for description in descriptions:
                self.store.insert(SystemCollections.FIELDS, field_metadata_row(name, description))
        except AdapterExecutionFailure as e:
            logger.error("Collection metadata write failed, dropping table", collection=name, error=str(e))
            self._undo_create(name)
            raise

        self._forget(name)
        logger.info("Collection created", collection=name, field_count=len(descriptions))
        self._fire_after(SchemaEvent.CREATE, name)
        return self.schema_manager.get_collection(name)

    def alter_collection(
        self,
        name: str,
        add: Optional[list[dict[str, Any]]] = None,
        change: Optional[list[dict[str, Any]]] = None,
        drop: Optional[list[str]] = None,
    ) -> Collection:
        """Add, change and drop fields of an existing collection.

        Raises:
            CollectionNotFound: If the collection does not exist.
            InvalidSchemaDescription: If any added or changed description is invalid.
        """
        self.schema_manager.get_collection(name)

        payload = self.emitter.apply(
            before(SchemaEvent.UPDATE),
            Payload(
                {"add": list(add or []), "change": list(change or []), "drop": list(drop or [])},
                collection_name=name,
            ),
        )
        changes = payload.data
        self._validate(changes["add"], changes["change"])

        statement = self.table_builder.alter_table(
            name,
            {
                "add": _physical(changes["add"]),
                "change": _physical(changes["change"]),
                "drop": changes["drop"],
            },
        )
        self.table_builder.build_table(statement)

        replaced = [item["field"] for item in changes["change"]] + list(changes["drop"])
        self._delete_field_metadata(name, replaced)
        for description in changes["add"] + changes["change"]:
            self.store.insert(SystemCollections.FIELDS, field_metadata_row(name, description))

        self._forget(name)
        logger.info(
            "Collection altered",
            collection=name,
            added=len(changes["add"]),
            changed=len(changes["change"]),
            dropped=len(changes["drop"]),
        )
        self._fire_after(SchemaEvent.UPDATE, name)
        return self.schema_manager.get_collection(name)

    def drop_collection(self, name: str) -> None:
        """Drop the table and every piece of metadata about it.

        Raises:
            CollectionNotFound: If the collection does not exist.
        """
        self.schema_manager.get_collection(name)
        self.emitter.apply(before(SchemaEvent.DROP), Payload({"collection": name}, collection_name=name))

        self.table_builder.build_table(self.table_builder.drop_table(name))

        self._delete_field_metadata(name)
        relation_ids = {
            row["id"]
            for key in ("collection_a", "collection_b")
            for row in self.store.select(SystemCollections.RELATIONS, ["id"], {key: name})
        }
        self.store.delete(SystemCollections.RELATIONS, relation_ids)
        self.store.delete(SystemCollections.COLLECTIONS, [name])

        self._forget(name)
        logger.info("Collection dropped", collection=name)
        self._fire_after(SchemaEvent.DROP, name)

    def _delete_field_metadata(self, name: str, fields: Optional[list[str]] = None) -> None:
        where: dict[str, Any] = {"collection": name}
        if fields is not None:
            if not fields:
                return
            where["field"] = fields
        rows = self.store.select(SystemCollections.FIELDS, ["id"], where)
        self.store.delete(SystemCollections.FIELDS, [row["id"] for row in rows])

    def _undo_create(self, name: str) -> None:
        self.table_builder.build_table(self.table_builder.drop_table(name))
        self._delete_field_metadata(name)
        self.store.delete(SystemCollections.COLLECTIONS, [name])
        self._forget(name)
