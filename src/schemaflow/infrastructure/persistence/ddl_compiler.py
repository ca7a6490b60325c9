"""Dialect-independent DDL statements and their SQL compiler.

The table builder produces ``CreateTableStatement`` / ``AlterTableStatement``
objects. ``DDLCompiler`` turns them into SQL strings for one dialect, using
SQLAlchemy's identifier preparer for quoting.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect

from schemaflow.core.exceptions import AdapterExecutionFailure
from schemaflow.domain.services.data_types import DataTypes


@dataclass
class ColumnDefinition:
    """A single column, already resolved to a dialect column kind.

    Attributes:
        name: Column name.
        type: Logical type from the field description.
        kind: Dialect column kind (``VARCHAR``, ``INTEGER``...).
        length: Length, precision, or SET/ENUM values. Always None for
            integer columns.
        nullable: Whether NULL is allowed.
        default: Default value, None for no default.
        auto_increment: Integer columns only.
        unsigned: Integer columns only.
    """

    name: str
    type: str
    kind: str
    length: Optional[Any] = None
    nullable: bool = True
    default: Any = None
    auto_increment: bool = False
    unsigned: bool = False

    @property
    def is_integer(self) -> bool:
        return DataTypes.is_integer_type(self.type)


@dataclass
class CreateTableStatement:
    name: str
    columns: list[ColumnDefinition] = field(default_factory=list)
    primary_key: Optional[str] = None

    def add_column(self, column: ColumnDefinition) -> None:
        self.columns.append(column)

    @property
    def constraints(self) -> list[tuple[str, str]]:
        """Table constraints as ``(kind, column)`` pairs."""
        return [("PRIMARY KEY", self.primary_key)] if self.primary_key else []


@dataclass
class AlterTableStatement:
    name: str
    add: list[ColumnDefinition] = field(default_factory=list)
    change: list[ColumnDefinition] = field(default_factory=list)
    drop: list[str] = field(default_factory=list)

    def add_column(self, column: ColumnDefinition) -> None:
        self.add.append(column)

    def change_column(self, column: ColumnDefinition) -> None:
        self.change.append(column)

    def drop_column(self, name: str) -> None:
        self.drop.append(name)

    @property
    def is_empty(self) -> bool:
        return not (self.add or self.change or self.drop)


@dataclass
class DropTableStatement:
    name: str


DDLStatement = Union[CreateTableStatement, AlterTableStatement, DropTableStatement]

DIALECTS: dict[str, Any] = {
    "mysql": mysql.dialect,
    "sqlite": sqlite.dialect,
    "postgresql": postgresql.dialect,
}

# Column kinds that accept a parenthesized length
LENGTH_KINDS = frozenset({
    "CHAR",
    "VARCHAR",
    "BINARY",
    "VARBINARY",
    "BIT",
    "DECIMAL",
    "NUMERIC",
})
LIST_KINDS = frozenset({"SET", "ENUM"})


class DDLCompiler:
    """Compile DDL statements to SQL for one dialect.

    Example:
        >>> compiler = DDLCompiler("sqlite")
        >>> statement = CreateTableStatement("tags", primary_key="id")
        >>> statement.add_column(ColumnDefinition("id", "integer", "INTEGER", nullable=False))
        >>> compiler.compile(statement)
        ['CREATE TABLE tags (\\n  id INTEGER NOT NULL,\\n  PRIMARY KEY (id)\\n)']
    """

    def __init__(self, dialect: str | Dialect) -> None:
        if isinstance(dialect, str):
            name = dialect.lower()
            if name not in DIALECTS:
                raise ValueError(f"Unsupported dialect '{dialect}'")
            dialect = DIALECTS[name]()
        self.dialect = dialect
        self.name = dialect.name
        self._preparer = dialect.identifier_preparer

    def quote(self, identifier: str) -> str:
        return self._preparer.quote(identifier)

    def compile(self, statement: DDLStatement) -> list[str]:
        if isinstance(statement, CreateTableStatement):
            return [self.compile_create(statement)]
        if isinstance(statement, AlterTableStatement):
            return self.compile_alter(statement)
        if isinstance(statement, DropTableStatement):
            return [f"DROP TABLE {self.quote(statement.name)}"]
        raise TypeError(f"Unsupported DDL statement: {type(statement).__name__}")

    def compile_create(self, statement: CreateTableStatement) -> str:
        parts = [self.column_sql(column) for column in statement.columns]
        for kind, column in statement.constraints:
            parts.append(f"{kind} ({self.quote(column)})")
        body = ",\n  ".join(parts)
        return f"CREATE TABLE {self.quote(statement.name)} (\n  {body}\n)"

    def compile_alter(self, statement: AlterTableStatement) -> list[str]:
        if statement.is_empty:
            return []

        table = self.quote(statement.name)

        if self.name == "sqlite":
            if statement.change:
                raise AdapterExecutionFailure(
                    "alter_table",
                    statement.name,
                    "SQLite cannot change existing column definitions",
                )
            sql = [f"ALTER TABLE {table} ADD COLUMN {self.column_sql(c)}" for c in statement.add]
            sql += [f"ALTER TABLE {table} DROP COLUMN {self.quote(c)}" for c in statement.drop]
            return sql

        actions = [f"ADD COLUMN {self.column_sql(column)}" for column in statement.add]
        for column in statement.change:
            actions.extend(self._change_actions(column))
        actions += [f"DROP COLUMN {self.quote(name)}" for name in statement.drop]
        return [f"ALTER TABLE {table} " + ", ".join(actions)]

    def _change_actions(self, column: ColumnDefinition) -> list[str]:
        name = self.quote(column.name)
        if self.name == "mysql":
            return [f"CHANGE COLUMN {name} {self.column_sql(column)}"]

        actions = [f"ALTER COLUMN {name} TYPE {self.type_sql(column)}"]
        actions.append(
            f"ALTER COLUMN {name} {'DROP' if column.nullable else 'SET'} NOT NULL"
        )
        if column.default is None:
            actions.append(f"ALTER COLUMN {name} DROP DEFAULT")
        else:
            actions.append(f"ALTER COLUMN {name} SET DEFAULT {self.literal(column.default)}")
        return actions

    def column_sql(self, column: ColumnDefinition) -> str:
        parts = [self.quote(column.name), self.type_sql(column)]

        if column.is_integer and column.unsigned and self.name == "mysql":
            parts.append("UNSIGNED")

        if not column.nullable:
            parts.append("NOT NULL")

        if column.default is not None:
            parts.append(f"DEFAULT {self.literal(column.default)}")

        if column.is_integer and column.auto_increment:
            if self.name == "mysql":
                parts.append("AUTO_INCREMENT")
            elif self.name == "postgresql":
                parts.append("GENERATED BY DEFAULT AS IDENTITY")
            # SQLite assigns rowid values to INTEGER primary keys by itself

        return " ".join(parts)

    def type_sql(self, column: ColumnDefinition) -> str:
        kind = column.kind.upper()
        length = column.length

        if length is None or length == "" or column.is_integer:
            return kind

        if DataTypes.is_list_type(column.type) or kind in LIST_KINDS:
            # Other dialects store the chosen value(s) as plain text
            if self.name != "mysql" or kind not in LIST_KINDS:
                return kind
            values = length if isinstance(length, (list, tuple)) else [
                value.strip().strip("'\"") for value in str(length).split(",")
            ]
            return f"{kind}({', '.join(self.literal(str(value)) for value in values)})"

        if kind in LENGTH_KINDS:
            return f"{kind}({str(length).replace(' ', '')})"

        return kind

    def literal(self, value: Any) -> str:
        if isinstance(value, bool):
            if self.name == "postgresql":
                return "TRUE" if value else "FALSE"
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        text_value = str(value).replace("'", "''")
        return f"'{text_value}'"
