"""Schema manager: cached access to collections, fields and relations.

Wraps a schema source, turns raw rows into Collection and Field objects,
resolves relations into fields, and owns the value-casting rules and the
list of reserved system collections.

The in-memory cache is process-local and not lock protected: two threads
loading the same collection for the first time may both hit the source,
and the later one overwrites the entry with an equal value.
"""

import base64
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from schemaflow.core.exceptions import CollectionNotFound
from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.collection import Collection
from schemaflow.domain.entities.field import (
    Field,
    FieldInterface,
    InterfaceKind,
    Relation,
    RelationSide,
)
from schemaflow.domain.services.data_types import DataTypes

if TYPE_CHECKING:
    from schemaflow.infrastructure.persistence.schema_source import SchemaSource

logger = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ZERO_DATE = "0000-00-00"
ZERO_DATETIME = "0000-00-00 00:00:00"

SYSTEM_COLLECTION_PREFIX = "core_"

SYSTEM_COLLECTION_NAMES = (
    "activity",
    "activity_read",
    "collections",
    "collection_presets",
    "fields",
    "files",
    "folders",
    "groups",
    "messages",
    "migrations",
    "permissions",
    "relations",
    "revisions",
    "settings",
    "users",
)


class SystemCollections:
    """Names of the reserved infrastructure collections."""

    ACTIVITY = f"{SYSTEM_COLLECTION_PREFIX}activity"
    COLLECTIONS = f"{SYSTEM_COLLECTION_PREFIX}collections"
    COLLECTION_PRESETS = f"{SYSTEM_COLLECTION_PREFIX}collection_presets"
    FIELDS = f"{SYSTEM_COLLECTION_PREFIX}fields"
    FILES = f"{SYSTEM_COLLECTION_PREFIX}files"
    GROUPS = f"{SYSTEM_COLLECTION_PREFIX}groups"
    MESSAGES = f"{SYSTEM_COLLECTION_PREFIX}messages"
    PERMISSIONS = f"{SYSTEM_COLLECTION_PREFIX}permissions"
    RELATIONS = f"{SYSTEM_COLLECTION_PREFIX}relations"
    REVISIONS = f"{SYSTEM_COLLECTION_PREFIX}revisions"
    SETTINGS = f"{SYSTEM_COLLECTION_PREFIX}settings"
    USERS = f"{SYSTEM_COLLECTION_PREFIX}users"


def add_system_collection_prefix(names: str | Iterable[str]) -> list[str]:
    if isinstance(names, str):
        names = [names]
    return [f"{SYSTEM_COLLECTION_PREFIX}{name}" for name in names]


class SchemaManager:
    """Cached schema access on top of a schema source.

    Example:
        manager = SchemaManager(SQLAlchemySchemaSource(engine))
        articles = manager.get_collection("articles")
        articles.primary_key_name  # "id"
    """

    def __init__(self, source: "SchemaSource") -> None:
        self.source = source
        self._collections: dict[str, Collection] = {}
        self._fields: dict[str, list[Field]] = {}

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def get_collection(self, name: str, skip_cache: bool = False) -> Collection:
        """Return the collection, loading it from the source when not cached.

        Fields are not fetched here; they are loaded on first access.

        Raises:
            CollectionNotFound: If the source has no such collection.
        """
        collection = self._collections.get(name)
        if collection is None or skip_cache:
            row = self.source.get_collection(name)
            if not row:
                raise CollectionNotFound(name)

            if skip_cache:
                self._fields.pop(name, None)

            collection = self.create_collection_from_row(
                {**row, "schema": self.source.get_schema_name()}
            )
            self._collections[name] = collection
            logger.debug("Collection loaded", collection=name, skip_cache=skip_cache)

        return collection

    def get_collections(self) -> dict[str, Collection]:
        """Load every collection from the source and refresh the cache."""
        collections: dict[str, Collection] = {}
        schema_name = self.source.get_schema_name()
        for row in self.source.get_collections():
            collection = self.create_collection_from_row({**row, "schema": schema_name})
            self._collections[collection.name] = collection
            collections[collection.name] = collection
        return collections

    def collection_exists(self, name: str) -> bool:
        return self.source.collection_exists(name)

    def forget_collection(self, name: str) -> None:
        """Drop a collection and its fields from the cache."""
        self._collections.pop(name, None)
        self._fields.pop(name, None)
        logger.debug("Collection evicted from schema cache", collection=name)

    def create_collection_from_row(self, row: dict[str, Any]) -> Collection:
        collection = Collection.from_row(row, loader=self.get_fields)
        collection.system = self.is_system_collection(collection.name)
        return collection

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def get_fields(self, collection_name: str, skip_cache: bool = False) -> list[Field]:
        """Return the fields of a collection with their relations attached.

        A field named on the A side of one relation and on the B side of
        another gets the A-side relation.
        """
        fields = self._fields.get(collection_name)
        if fields is None or skip_cache:
            field_rows = self.source.get_fields(collection_name)
            relation_rows = self.source.get_relations(collection_name)

            relations_a: dict[str, Relation] = {}
            relations_b: dict[str, Relation] = {}
            for row in relation_rows:
                relation = Relation.from_row(row)
                if relation.collection_a == collection_name:
                    relations_a[relation.field_a] = relation.for_side(RelationSide.A)
                if relation.field_b and relation.collection_b == collection_name:
                    relations_b[relation.field_b] = relation.for_side(RelationSide.B)

            fields = []
            for row in field_rows:
                item = self.create_field_from_row({"collection": collection_name, **row})
                if item.name in relations_a:
                    item.set_relation(relations_a[item.name])
                elif item.name in relations_b:
                    item.set_relation(relations_b[item.name])
                fields.append(item)

            self._fields[collection_name] = fields
            logger.debug(
                "Fields loaded",
                collection=collection_name,
                field_count=len(fields),
                relation_count=len(relation_rows),
            )

        return fields

    def get_field(self, collection_name: str, field_name: str, skip_cache: bool = False) -> Optional[Field]:
        if not skip_cache:
            for item in self._fields.get(collection_name, []):
                if item.name == field_name:
                    return item

        rows = self.source.get_fields(collection_name, {"field": field_name})
        if not rows:
            return None
        item = self.create_field_from_row({"collection": collection_name, **rows[0]})

        cached = self._fields.get(collection_name)
        if cached is not None:
            self._fields[collection_name] = [
                item if existing.name == field_name else existing for existing in cached
            ]
        return item

    def get_all_fields(self) -> list[Field]:
        return [self.create_field_from_row(row) for row in self.source.get_all_fields()]

    def get_all_fields_by_collection(self) -> dict[str, list[Field]]:
        grouped: dict[str, list[Field]] = {}
        for item in self.get_all_fields():
            grouped.setdefault(item.collection, []).append(item)
        return grouped

    def create_field_from_row(self, row: dict[str, Any]) -> Field:
        """Build a Field from a raw source row, applying the schema defaults."""
        row = dict(row)
        type_name = DataTypes.normalize(row.get("type"))

        if row.get("key") == "PRI":
            row["required"] = True
            row["interface"] = InterfaceKind.PRIMARY_KEY.value

        if not row.get("interface"):
            row["interface"] = self.get_field_default_interface(type_name)

        # Alias fields have no column, so they are always nullable
        if type_name == DataTypes.TYPE_ALIAS:
            row["nullable"] = True

        # Some stores keep the string "NULL" as the default of nullable columns
        default = row.get("default_value")
        if row.get("nullable", True) and isinstance(default, str) and default.upper() == "NULL":
            row["default_value"] = None

        return Field.from_row(row)

    def get_primary_key(self, collection_name: str) -> Optional[str]:
        return self.get_collection(collection_name).primary_key_name

    def has_system_date_field(self, collection_name: str) -> bool:
        collection = self.get_collection(collection_name)
        return bool(collection.get_date_create_field() or collection.get_date_update_field())

    # ------------------------------------------------------------------
    # Value casting
    # ------------------------------------------------------------------

    def cast_record_values(
        self,
        records: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        fields: Iterable[Field],
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Cast every known field of one record or a list of records.

        Returns the same shape it received.
        """
        single = isinstance(records, Mapping)
        rows = [dict(records)] if single else [dict(record) for record in records]

        for item in fields:
            for row in rows:
                if item.name in row:
                    row[item.name] = self.cast_value(row[item.name], item.type)

        return rows[0] if single else rows

    def cast_value(self, value: Any, type_name: Optional[str] = None) -> Any:
        """Cast a stored value to its logical type.

        Casting an already cast value again returns it unchanged. Binary
        values are the exception: every str or bytes value is base64 encoded.
        """
        name = DataTypes.normalize(type_name)

        if name in DataTypes.BOOLEAN_TYPES:
            return cast_boolean(value)

        if name in DataTypes.BINARY_TYPES:
            return _encode_binary(value)

        if self.is_integer_type(name):
            return _to_number(value, name, integer=True)

        if self.is_floating_point_type(name):
            return _to_number(value, name, integer=False)

        if name in (DataTypes.TYPE_DATE, DataTypes.TYPE_DATETIME):
            return _normalize_date(value, name == DataTypes.TYPE_DATETIME)

        if name == DataTypes.TYPE_TIME:
            return value if value else None

        return value

    def cast_default_value(self, value: Any, type_name: Optional[str] = None) -> Any:
        if isinstance(value, str) and value.lower() == "null":
            return None
        return self.cast_value(value, type_name)

    # ------------------------------------------------------------------
    # System collections
    # ------------------------------------------------------------------

    def get_system_collections(self) -> list[str]:
        return add_system_collection_prefix(SYSTEM_COLLECTION_NAMES)

    def is_system_collection(self, name: str) -> bool:
        return name in self.get_system_collections()

    # ------------------------------------------------------------------
    # Type catalog and DDL passthrough
    # ------------------------------------------------------------------

    def is_primary_key_interface(self, interface: Any) -> bool:
        return FieldInterface.parse(interface).kind is InterfaceKind.PRIMARY_KEY

    def is_integer_type(self, type_name: str) -> bool:
        return DataTypes.is_integer_type(type_name)

    def is_floating_point_type(self, type_name: str) -> bool:
        return DataTypes.is_floating_point_type(type_name)

    def get_data_type(self, type_name: str) -> str:
        return self.source.get_data_type(type_name)

    def get_field_default_interface(self, type_name: str) -> str:
        return self.source.get_column_default_interface(type_name)

    def get_field_default_length(self, type_name: str) -> int | str | None:
        return self.source.get_column_default_length(type_name)

    def add_primary_key(self, table: str, column: str) -> bool:
        return self.source.add_primary_key(table, column)

    def drop_primary_key(self, table: str, column: str) -> bool:
        return self.source.drop_primary_key(table, column)


def cast_boolean(value: Any) -> bool:
    """Truthiness, treating the strings '', '0' and 'false' as False."""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false")
    return bool(value)


def _encode_binary(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(bytes(value)).decode("ascii")


def _to_number(value: Any, type_name: str, integer: bool) -> int | float | None:
    """Coerce a stored value to int or float.

    Empty strings become None. Integer columns truncate fractional text
    such as '12.5'. Values that are not numeric are logged and become None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        if not integer:
            return float(value)
        try:
            return int(value)
        except ValueError:
            return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Value is not numeric", type=type_name, value=repr(value))
        return None


def _normalize_date(value: Any, with_time: bool) -> Optional[str]:
    fmt = DATETIME_FORMAT if with_time else DATE_FORMAT

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(fmt)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(fmt)

    text_value = str(value).strip()
    if text_value in (ZERO_DATE, ZERO_DATETIME):
        return None
    try:
        return datetime.strptime(text_value, fmt).strftime(fmt)
    except ValueError:
        return None
