"""Base abstractions for schema sources.

A schema source is the dialect-specific gateway that lists collections,
fields and relations from the real store and executes DDL. The schema
manager and the table builder are dialect-agnostic and only talk to this
contract.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from schemaflow.domain.services.data_types import TypeCatalog
from schemaflow.infrastructure.persistence.ddl_compiler import DDLCompiler, DDLStatement


class SchemaSource(ABC):
    """Abstract base class for schema sources.

    Raw rows are plain dicts:

    * collection rows: ``collection``, ``managed``, ``hidden``, ``single``,
      ``translation``, ``note``, ``icon``
    * field rows: ``collection``, ``field``, ``type``, ``key`` (``"PRI"``
      for the primary key), ``nullable``, ``default_value``, ``interface``,
      ``options`` (JSON text), ``required``, ``length``, ``sort``
    * relation rows: ``id``, ``collection_a``, ``field_a``,
      ``collection_b``, ``field_b``, ``junction_collection``,
      ``junction_key_a``, ``junction_key_b``
    """

    @abstractmethod
    def get_collection(self, name: str) -> Optional[dict[str, Any]]:
        """Return the collection row, or None when the collection does not exist."""
        ...

    @abstractmethod
    def get_collections(self) -> list[dict[str, Any]]:
        """Return every collection row."""
        ...

    @abstractmethod
    def get_fields(
        self, collection: str, params: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]:
        """Return the field rows of a collection, optionally filtered by ``{"field": name}``."""
        ...

    @abstractmethod
    def get_all_fields(self) -> list[dict[str, Any]]:
        """Return the field rows of every collection."""
        ...

    @abstractmethod
    def get_relations(self, collection: str) -> list[dict[str, Any]]:
        """Return relation rows where the collection is on either side."""
        ...

    @abstractmethod
    def collection_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    def get_schema_name(self) -> Optional[str]:
        ...

    @abstractmethod
    def get_data_type(self, type_name: str) -> str:
        """Return the column kind this dialect uses for a logical type."""
        ...

    @abstractmethod
    def get_column_default_interface(self, type_name: str) -> str:
        ...

    @abstractmethod
    def get_column_default_length(self, type_name: str) -> int | str | None:
        ...

    @abstractmethod
    def add_primary_key(self, table: str, column: str) -> bool:
        ...

    @abstractmethod
    def drop_primary_key(self, table: str, column: str) -> bool:
        ...

    @abstractmethod
    def execute(self, statement: DDLStatement) -> list[str]:
        """Compile and execute a DDL statement, returning the SQL that ran.

        Raises:
            AdapterExecutionFailure: When the store rejects the statement.
        """
        ...

    def get_default_interfaces(self, types: Iterable[str]) -> dict[str, str]:
        """Map each logical type to its default interface."""
        return {name: self.get_column_default_interface(name) for name in types}


class CatalogSchemaSource(SchemaSource):
    """Schema source with no store behind it.

    Knows only the type catalog of one dialect. ``execute`` compiles the
    statement and returns the SQL without running it, which is what the
    ``ddl`` command needs to preview a table.
    """

    def __init__(self, dialect: str) -> None:
        self.catalog = TypeCatalog(dialect)
        self.compiler = DDLCompiler(dialect)

    def get_collection(self, name: str) -> Optional[dict[str, Any]]:
        return None

    def get_collections(self) -> list[dict[str, Any]]:
        return []

    def get_fields(
        self, collection: str, params: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]:
        return []

    def get_all_fields(self) -> list[dict[str, Any]]:
        return []

    def get_relations(self, collection: str) -> list[dict[str, Any]]:
        return []

    def collection_exists(self, name: str) -> bool:
        return False

    def get_schema_name(self) -> Optional[str]:
        return None

    def get_data_type(self, type_name: str) -> str:
        return self.catalog.get_data_type(type_name)

    def get_column_default_interface(self, type_name: str) -> str:
        return self.catalog.get_default_interface(type_name)

    def get_column_default_length(self, type_name: str) -> int | str | None:
        return self.catalog.get_default_length(type_name)

    def add_primary_key(self, table: str, column: str) -> bool:
        return False

    def drop_primary_key(self, table: str, column: str) -> bool:
        return False

    def execute(self, statement: DDLStatement) -> list[str]:
        return self.compiler.compile(statement)
