"""Table builder: turns abstract field descriptions into DDL statements.

A field description is a dict such as::

    {"field": "title", "type": "varchar", "interface": "text-input", "length": 100}

Every description must carry ``field``, ``type`` and ``interface`` as
non-empty strings. Optional keys: ``length``, ``nullable`` (default True),
``default_value``, ``auto_increment`` and ``unsigned`` (integer types only).
"""

from typing import Any, Iterable, Optional

from schemaflow.core.exceptions import InvalidSchemaDescription
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.data_types import DataTypes
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.persistence.ddl_compiler import (
    AlterTableStatement,
    ColumnDefinition,
    CreateTableStatement,
    DDLStatement,
    DropTableStatement,
)

logger = get_logger(__name__)

REQUIRED_ATTRIBUTES = ("field", "type", "interface")


class TableBuilder:
    """Builds create/alter table statements from field descriptions."""

    def __init__(self, schema_manager: SchemaManager) -> None:
        self.schema_manager = schema_manager

    def create_table(self, name: str, columns_data: list[dict[str, Any]]) -> CreateTableStatement:
        """Build a CREATE TABLE statement.

        The first description whose interface is the primary-key interface
        becomes the table's primary key. Later ones are ignored.

        Raises:
            InvalidSchemaDescription: If any description lacks a required attribute.
        """
        table = CreateTableStatement(name)
        columns = self.create_columns(columns_data)

        primary_key: Optional[str] = None
        for column_data in columns_data:
            if not self.schema_manager.is_primary_key_interface(column_data["interface"]):
                continue
            if primary_key is None:
                primary_key = column_data["field"]
            else:
                logger.warning(
                    "Multiple primary key fields in table description, keeping the first",
                    table_name=name,
                    primary_key=primary_key,
                    ignored_field=column_data["field"],
                )

        for column in columns:
            if column.name == primary_key:
                column.nullable = False
            table.add_column(column)
        table.primary_key = primary_key

        logger.debug(
            "Create table statement built",
            table_name=name,
            column_count=len(columns),
            primary_key=primary_key,
        )
        return table

    def alter_table(self, name: str, data: dict[str, Any]) -> AlterTableStatement:
        """Build an ALTER TABLE statement from ``{"add": [...], "change": [...], "drop": [...]}``.

        ``add`` and ``change`` are validated together so that one error lists
        every offending description of both lists.
        """
        to_add = list(data.get("add") or [])
        to_change = list(data.get("change") or [])
        to_drop = list(data.get("drop") or [])

        violations = self.collect_violations(to_add) + self.collect_violations(to_change)
        if violations:
            raise InvalidSchemaDescription(violations)

        table = AlterTableStatement(name)
        for column in self.create_columns(to_add):
            table.add_column(column)
        for column in self.create_columns(to_change):
            table.change_column(column)
        for column_name in to_drop:
            table.drop_column(column_name)

        logger.debug(
            "Alter table statement built",
            table_name=name,
            added=len(table.add),
            changed=len(table.change),
            dropped=len(table.drop),
        )
        return table

    def create_columns(self, data: Iterable[dict[str, Any]]) -> list[ColumnDefinition]:
        """Validate every description, then convert them to column definitions."""
        data = list(data)
        violations = self.collect_violations(data)
        if violations:
            raise InvalidSchemaDescription(violations)
        return [self._build_column(column["field"], column) for column in data]

    def create_column(self, name: str, data: dict[str, Any]) -> ColumnDefinition:
        violations = self.collect_violations([data])
        if violations:
            raise InvalidSchemaDescription(violations)
        return self._build_column(name, data)

    def drop_table(self, name: str) -> DropTableStatement:
        return DropTableStatement(name)

    def build_table(self, table: DDLStatement) -> list[str]:
        """Execute a statement through the schema source.

        Raises:
            AdapterExecutionFailure: Propagated unchanged from the source.
        """
        return self.schema_manager.source.execute(table)

    def _build_column(self, name: str, data: dict[str, Any]) -> ColumnDefinition:
        type_name = DataTypes.normalize(data["type"])
        kind = self.schema_manager.get_data_type(type_name)
        length = data.get("length", self.schema_manager.get_field_default_length(type_name))

        column = ColumnDefinition(
            name=name,
            type=type_name,
            kind=kind,
            length=length,
            nullable=bool(data.get("nullable", True)),
            default=data.get("default_value"),
        )

        # Integer columns carry auto increment and signedness instead of a length
        if column.is_integer:
            column.auto_increment = bool(data.get("auto_increment", False))
            column.unsigned = bool(data.get("unsigned", False))
            column.length = None

        return column

    @staticmethod
    def collect_violations(columns_data: Iterable[dict[str, Any]]) -> list[tuple[str, str, str]]:
        """Return ``(field, attribute, message)`` for every invalid required attribute."""
        violations: list[tuple[str, str, str]] = []
        for index, column in enumerate(columns_data):
            if not isinstance(column, dict):
                violations.append((f"#{index}", "*", "field description must be an object"))
                continue

            label = column.get("field")
            if not isinstance(label, str) or not label:
                label = f"#{index}"

            for attribute in REQUIRED_ATTRIBUTES:
                value = column.get(attribute)
                if value is None or value == "":
                    violations.append((label, attribute, "this value is required"))
                elif not isinstance(value, str):
                    violations.append((label, attribute, "this value should be of type string"))

        return violations
