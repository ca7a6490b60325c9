"""Field, interface and relation entities.

A Field is one named, typed attribute of a collection. Its interface is a
behavioral tag (primary key, slug, password...) that drives lifecycle
handlers independently of the storage type.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from schemaflow.domain.services.data_types import DataTypes


class InterfaceKind(str, Enum):
    """Interfaces the lifecycle handlers know about.

    ``CUSTOM`` covers every other interface string (``text-input``,
    ``toggle``, extension interfaces...).
    """

    PRIMARY_KEY = "primary_key"
    TRANSLATION = "translation"
    SLUG = "slug"
    PASSWORD = "password"
    FILE = "file"
    DATE_CREATED = "date_created"
    DATE_MODIFIED = "date_modified"
    USER_CREATED = "user_created"
    USER_MODIFIED = "user_modified"
    SORT = "sort"
    STATUS = "status"
    ALIAS = "alias"
    CUSTOM = "custom"


SYSTEM_INTERFACES = frozenset({
    InterfaceKind.PRIMARY_KEY,
    InterfaceKind.DATE_CREATED,
    InterfaceKind.DATE_MODIFIED,
    InterfaceKind.USER_CREATED,
    InterfaceKind.USER_MODIFIED,
    InterfaceKind.SORT,
    InterfaceKind.STATUS,
})


@dataclass(frozen=True)
class FieldInterface:
    """A field interface: a known kind, or ``CUSTOM`` carrying the raw name.

    Example:
        >>> FieldInterface.parse("slug").kind
        <InterfaceKind.SLUG: 'slug'>
        >>> FieldInterface.parse("color-picker").name
        'color-picker'
    """

    kind: InterfaceKind
    name: str

    @classmethod
    def parse(cls, raw: "str | FieldInterface | None") -> "FieldInterface":
        if isinstance(raw, FieldInterface):
            return raw
        name = (raw or "").strip()
        try:
            kind = InterfaceKind(name.lower())
        except ValueError:
            kind = InterfaceKind.CUSTOM
        if kind is InterfaceKind.CUSTOM:
            return cls(kind=kind, name=name)
        return cls(kind=kind, name=kind.value)

    @property
    def is_system(self) -> bool:
        return self.kind in SYSTEM_INTERFACES

    def __str__(self) -> str:
        return self.name


class RelationSide(str, Enum):
    """Which endpoint of a relation a field is."""

    A = "a"
    B = "b"


class Cardinality(str, Enum):
    MANY_TO_ONE = "many_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


@dataclass(frozen=True)
class Relation:
    """A declared link between a field of one collection and another collection.

    The same relation row is seen from the A side (the owning field, e.g. a
    foreign key) or from the B side (the alias field listing related rows).

    Attributes:
        collection_a: Collection holding ``field_a``.
        field_a: Owning field.
        collection_b: Related collection.
        field_b: Field on the related collection pointing back, if any.
        junction_collection: Junction collection for many-to-many relations.
        junction_key_a: Junction field referencing ``collection_a``.
        junction_key_b: Junction field referencing ``collection_b``.
        side: The endpoint this relation was resolved for.
    """

    collection_a: str
    field_a: str
    collection_b: Optional[str] = None
    field_b: Optional[str] = None
    junction_collection: Optional[str] = None
    junction_key_a: Optional[str] = None
    junction_key_b: Optional[str] = None
    id: Optional[Any] = None
    side: RelationSide = RelationSide.A

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Relation":
        return cls(
            id=row.get("id"),
            collection_a=row["collection_a"],
            field_a=row["field_a"],
            collection_b=row.get("collection_b"),
            field_b=row.get("field_b"),
            junction_collection=row.get("junction_collection"),
            junction_key_a=row.get("junction_key_a"),
            junction_key_b=row.get("junction_key_b"),
        )

    def for_side(self, side: RelationSide) -> "Relation":
        return replace(self, side=side)

    @property
    def owning_field(self) -> str:
        if self.side is RelationSide.A:
            return self.field_a
        return self.field_b or ""

    @property
    def related_field(self) -> Optional[str]:
        if self.side is RelationSide.A:
            return self.field_b
        return self.field_a

    @property
    def related_collection(self) -> Optional[str]:
        if self.side is RelationSide.A:
            return self.collection_b
        return self.collection_a

    @property
    def cardinality(self) -> Cardinality:
        if self.junction_collection:
            return Cardinality.MANY_TO_MANY
        if self.side is RelationSide.A:
            return Cardinality.MANY_TO_ONE
        return Cardinality.ONE_TO_MANY


@dataclass
class Field:
    """One named, typed attribute of a collection.

    Fields are built by the schema manager from raw source rows and only
    mutated afterwards to attach a resolved relation.
    """

    collection: str
    name: str
    type: str
    interface: FieldInterface = field(default_factory=lambda: FieldInterface.parse(None))
    nullable: bool = True
    default_value: Any = None
    required: bool = False
    key: str = ""
    length: Optional[int | str] = None
    options: Optional[dict[str, Any]] = None
    sort: Optional[int] = None
    relation: Optional[Relation] = None

    def __post_init__(self) -> None:
        self.interface = FieldInterface.parse(self.interface)
        if self.interface.kind is InterfaceKind.PRIMARY_KEY:
            self.nullable = False
            self.required = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Field":
        """Build a field from a raw schema source row."""
        options = row.get("options")
        if isinstance(options, str):
            try:
                options = json.loads(options) if options else None
            except ValueError:
                options = None
        return cls(
            collection=row.get("collection", ""),
            name=row["field"],
            type=DataTypes.normalize(row.get("type")),
            interface=FieldInterface.parse(row.get("interface")),
            nullable=bool(row.get("nullable", True)),
            default_value=row.get("default_value"),
            required=bool(row.get("required", False)),
            key=row.get("key") or "",
            length=row.get("length"),
            options=options or None,
            sort=row.get("sort"),
        )

    def get_options(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Return all options, or one option value when ``key`` is given."""
        options = self.options or {}
        if key is None:
            return options
        return options.get(key, default)

    def set_relation(self, relation: Relation) -> None:
        self.relation = relation

    @property
    def has_relation(self) -> bool:
        return self.relation is not None

    def is_array(self) -> bool:
        return DataTypes.is_array_type(self.type)

    def is_boolean(self) -> bool:
        return DataTypes.is_boolean_type(self.type)

    def is_json(self) -> bool:
        return DataTypes.is_json_type(self.type)

    def is_primary(self) -> bool:
        return self.interface.kind is InterfaceKind.PRIMARY_KEY

    def is_alias(self) -> bool:
        return self.type == DataTypes.TYPE_ALIAS

    def is_system(self) -> bool:
        return self.interface.is_system
