"""Schema source backed by a SQLAlchemy engine.

Physical tables and columns come from SQLAlchemy inspection. The
``core_collections``, ``core_fields`` and ``core_relations`` metadata
tables add what the database cannot tell: logical types (``json``,
``array``...), interfaces, options and relations.
"""

from typing import Any, Optional

from sqlalchemy import Engine, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError

from schemaflow.core.exceptions import AdapterExecutionFailure
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.data_types import TypeCatalog
from schemaflow.infrastructure.persistence.ddl_compiler import (
    AlterTableStatement,
    CreateTableStatement,
    DDLCompiler,
    DDLStatement,
)
from schemaflow.infrastructure.persistence.schema_source import SchemaSource
from schemaflow.infrastructure.persistence.system_tables import (
    CollectionModel,
    FieldModel,
    RelationModel,
)

logger = get_logger(__name__)


def _operation_name(statement: DDLStatement) -> str:
    if isinstance(statement, CreateTableStatement):
        return "create_table"
    if isinstance(statement, AlterTableStatement):
        return "alter_table"
    return "drop_table"


def _strip_quotes(value: Any) -> Any:
    if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


class SQLAlchemySchemaSource(SchemaSource):
    """Schema source for any dialect SQLAlchemy can inspect.

    Example:
        engine = create_engine("sqlite:///app.db")
        source = SQLAlchemySchemaSource(engine)
        source.get_collection("articles")  # {"collection": "articles", ...} or None
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.catalog = TypeCatalog(engine.dialect.name)
        self.compiler = DDLCompiler(engine.dialect)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _metadata_rows(self, statement) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(statement).mappings()]

    def _table_names(self) -> list[str]:
        return inspect(self.engine).get_table_names()

    def get_collection(self, name: str) -> Optional[dict[str, Any]]:
        if not self.collection_exists(name):
            return None
        rows = self._metadata_rows(
            select(CollectionModel.__table__).where(CollectionModel.collection == name)
        )
        return rows[0] if rows else {"collection": name, "managed": False}

    def get_collections(self) -> list[dict[str, Any]]:
        metadata = {
            row["collection"]: row
            for row in self._metadata_rows(select(CollectionModel.__table__))
        }
        return [
            metadata.get(name, {"collection": name, "managed": False})
            for name in self._table_names()
        ]

    def collection_exists(self, name: str) -> bool:
        return inspect(self.engine).has_table(name)

    def get_schema_name(self) -> Optional[str]:
        return inspect(self.engine).default_schema_name

    # ------------------------------------------------------------------
    # Fields and relations
    # ------------------------------------------------------------------

    def get_fields(
        self, collection: str, params: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]:
        if not self.collection_exists(collection):
            return []

        inspector = inspect(self.engine)
        primary_keys = set(
            inspector.get_pk_constraint(collection).get("constrained_columns") or []
        )
        metadata = {
            row["field"]: row
            for row in self._metadata_rows(
                select(FieldModel.__table__).where(FieldModel.collection == collection)
            )
        }

        rows: list[dict[str, Any]] = []
        for column in inspector.get_columns(collection):
            name = column["name"]
            meta = metadata.pop(name, {})
            column_type = column["type"]
            rows.append(
                {
                    "collection": collection,
                    "field": name,
                    "type": meta.get("type") or column_type.__visit_name__.lower(),
                    "key": "PRI" if name in primary_keys else "",
                    "nullable": bool(column.get("nullable", True)),
                    "default_value": _strip_quotes(column.get("default")),
                    "length": meta.get("length") or getattr(column_type, "length", None),
                    "interface": meta.get("interface"),
                    "options": meta.get("options"),
                    "required": bool(meta.get("required", False)),
                    "sort": meta.get("sort"),
                }
            )

        # Metadata-only fields (aliases) have no physical column
        for name, meta in metadata.items():
            rows.append(
                {
                    "collection": collection,
                    "field": name,
                    "type": meta["type"],
                    "key": "",
                    "nullable": True,
                    "default_value": None,
                    "length": meta.get("length"),
                    "interface": meta.get("interface"),
                    "options": meta.get("options"),
                    "required": bool(meta.get("required", False)),
                    "sort": meta.get("sort"),
                }
            )

        if params and "field" in params:
            rows = [row for row in rows if row["field"] == params["field"]]
        return rows

    def get_all_fields(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for name in self._table_names():
            rows.extend(self.get_fields(name))
        return rows

    def get_relations(self, collection: str) -> list[dict[str, Any]]:
        table = RelationModel.__table__
        return self._metadata_rows(
            select(table).where(
                (table.c.collection_a == collection) | (table.c.collection_b == collection)
            )
        )

    # ------------------------------------------------------------------
    # Type catalog
    # ------------------------------------------------------------------

    def get_data_type(self, type_name: str) -> str:
        return self.catalog.get_data_type(type_name)

    def get_column_default_interface(self, type_name: str) -> str:
        return self.catalog.get_default_interface(type_name)

    def get_column_default_length(self, type_name: str) -> int | str | None:
        return self.catalog.get_default_length(type_name)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def add_primary_key(self, table: str, column: str) -> bool:
        if self.compiler.name == "sqlite":
            raise AdapterExecutionFailure(
                "add_primary_key", table, "SQLite cannot add a primary key to an existing table"
            )
        sql = (
            f"ALTER TABLE {self.compiler.quote(table)} "
            f"ADD PRIMARY KEY ({self.compiler.quote(column)})"
        )
        self._run("add_primary_key", table, [sql])
        return True

    def drop_primary_key(self, table: str, column: str) -> bool:
        quoted = self.compiler.quote(table)
        if self.compiler.name == "mysql":
            sql = f"ALTER TABLE {quoted} DROP PRIMARY KEY"
        elif self.compiler.name == "postgresql":
            sql = f"ALTER TABLE {quoted} DROP CONSTRAINT {self.compiler.quote(table + '_pkey')}"
        else:
            raise AdapterExecutionFailure(
                "drop_primary_key", table, "SQLite cannot drop the primary key of an existing table"
            )
        self._run("drop_primary_key", table, [sql])
        return True

    def execute(self, statement: DDLStatement) -> list[str]:
        """Compile the statement for this engine's dialect and run it in one transaction."""
        operation = _operation_name(statement)
        sql = self.compiler.compile(statement)
        self._run(operation, statement.name, sql)
        return sql

    def _run(self, operation: str, table: str, sql: list[str]) -> None:
        try:
            with self.engine.begin() as conn:
                for item in sql:
                    conn.execute(text(item))
        except SQLAlchemyError as e:
            logger.error(
                "DDL execution failed",
                operation=operation,
                collection=table,
                error=str(e),
            )
            raise AdapterExecutionFailure(operation, table, str(e)) from e

        logger.info("DDL executed", operation=operation, collection=table, statements=len(sql))
