"""Collection entity for data-defined record schemas.

A collection is a named group of records sharing a field schema. Its field
list is attached lazily: the schema manager hands over a loader, and the
source is only asked for fields when something actually reads them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from schemaflow.domain.entities.field import Field, InterfaceKind


FieldLoader = Callable[[str], list[Field]]


@dataclass
class Collection:
    """Collection entity.

    Attributes:
        name: Collection name (also the physical table name).
        schema: Database schema / namespace the collection lives in.
        managed: Whether the collection is managed through SchemaFlow.
        hidden: Hidden from listings.
        single: Holds a single record.
        system: Reserved infrastructure collection.
        translation: Optional translation map for the collection name.
        note: Free-form note.
        icon: Optional icon name.
    """

    name: str
    schema: Optional[str] = None
    managed: bool = True
    hidden: bool = False
    single: bool = False
    system: bool = False
    translation: Optional[Any] = None
    note: Optional[str] = None
    icon: Optional[str] = None
    loader: Optional[FieldLoader] = field(default=None, repr=False, compare=False)
    _fields: Optional[list[Field]] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Collection name is required")

    @classmethod
    def from_row(cls, row: dict[str, Any], loader: Optional[FieldLoader] = None) -> "Collection":
        return cls(
            name=row["collection"],
            schema=row.get("schema"),
            managed=bool(row.get("managed", True)),
            hidden=bool(row.get("hidden", False)),
            single=bool(row.get("single", False)),
            translation=row.get("translation"),
            note=row.get("note"),
            icon=row.get("icon"),
            loader=loader,
        )

    @property
    def fields(self) -> list[Field]:
        """All fields, loaded on first access."""
        if self._fields is None:
            self._fields = list(self.loader(self.name)) if self.loader else []
        return self._fields

    def set_fields(self, fields: Iterable[Field]) -> None:
        self._fields = list(fields)

    @property
    def fields_loaded(self) -> bool:
        return self._fields is not None

    def get_field(self, name: str) -> Optional[Field]:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def get_fields(self, names: Optional[Iterable[str]] = None) -> list[Field]:
        """Return every field, or the named subset in request order.

        Unknown names are skipped.
        """
        if names is None:
            return list(self.fields)
        by_name = {item.name: item for item in self.fields}
        return [by_name[name] for name in names if name in by_name]

    def has_field(self, name: str) -> bool:
        return self.get_field(name) is not None

    @property
    def field_names(self) -> list[str]:
        return [item.name for item in self.fields]

    def _field_with_interface(self, kind: InterfaceKind) -> Optional[Field]:
        for item in self.fields:
            if item.interface.kind is kind:
                return item
        return None

    @property
    def primary_key_field(self) -> Optional[Field]:
        return self._field_with_interface(InterfaceKind.PRIMARY_KEY)

    @property
    def primary_key_name(self) -> Optional[str]:
        pk = self.primary_key_field
        return pk.name if pk else None

    def get_date_create_field(self) -> Optional[Field]:
        return self._field_with_interface(InterfaceKind.DATE_CREATED)

    def get_date_update_field(self) -> Optional[Field]:
        return self._field_with_interface(InterfaceKind.DATE_MODIFIED)

    def get_user_create_field(self) -> Optional[Field]:
        return self._field_with_interface(InterfaceKind.USER_CREATED)

    def get_user_update_field(self) -> Optional[Field]:
        return self._field_with_interface(InterfaceKind.USER_MODIFIED)

    def get_fields_by_interface(self, kind: InterfaceKind) -> list[Field]:
        return [item for item in self.fields if item.interface.kind is kind]
