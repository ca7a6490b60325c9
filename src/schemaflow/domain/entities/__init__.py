"""Domain entities for SchemaFlow."""

from schemaflow.domain.entities.collection import Collection
from schemaflow.domain.entities.field import (
    Cardinality,
    Field,
    FieldInterface,
    InterfaceKind,
    Relation,
    RelationSide,
)
from schemaflow.domain.entities.payload import Payload

__all__ = [
    "Cardinality",
    "Collection",
    "Field",
    "FieldInterface",
    "InterfaceKind",
    "Payload",
    "Relation",
    "RelationSide",
]
