"""Unit tests for TableBuilder."""

import pytest

from schemaflow.core.exceptions import AdapterExecutionFailure, InvalidSchemaDescription
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.persistence.ddl_compiler import DDLCompiler, DropTableStatement
from schemaflow.infrastructure.persistence.schema_source import CatalogSchemaSource
from schemaflow.infrastructure.persistence.table_builder import TableBuilder

DESCRIPTIONS = [
    {"field": "id", "type": "integer", "interface": "primary_key", "auto_increment": True, "length": 11},
    {"field": "title", "type": "varchar", "interface": "text-input"},
    {"field": "price", "type": "decimal", "interface": "numeric", "length": "8,2"},
    {"field": "body", "type": "text", "interface": "textarea", "nullable": False},
]


@pytest.fixture
def builder() -> TableBuilder:
    return TableBuilder(SchemaManager(CatalogSchemaSource("mysql")))


class TestValidation:
    """Tests for description validation."""

    def test_every_offending_field_is_reported(self, builder: TableBuilder) -> None:
        """Test that one error names every invalid description, not only the first."""
        descriptions = [
            {"type": "varchar", "interface": "text-input"},
            {"field": "b", "interface": "text-input"},
            {"field": "c", "type": "integer"},
            {"field": "ok", "type": "varchar", "interface": "text-input"},
        ]

        with pytest.raises(InvalidSchemaDescription) as exc_info:
            builder.create_table("things", descriptions)

        assert exc_info.value.fields == ["#0", "b", "c"]
        assert ("b", "type", "this value is required") in exc_info.value.violations
        assert ("c", "interface", "this value is required") in exc_info.value.violations

    def test_non_string_attribute(self, builder: TableBuilder) -> None:
        """Test that required attributes must be strings."""
        with pytest.raises(InvalidSchemaDescription) as exc_info:
            builder.create_column("a", {"field": "a", "type": 3, "interface": "x"})

        assert exc_info.value.violations == [("a", "type", "this value should be of type string")]

    def test_alter_validates_add_and_change_together(self, builder: TableBuilder) -> None:
        """Test that alter_table reports violations of both lists at once."""
        with pytest.raises(InvalidSchemaDescription) as exc_info:
            builder.alter_table(
                "things",
                {
                    "add": [{"field": "new", "type": "varchar"}],
                    "change": [{"field": "old", "interface": "text-input"}],
                },
            )

        assert exc_info.value.fields == ["new", "old"]


class TestCreateTable:
    """Tests for create_table."""

    def test_single_primary_key_constraint(self, builder: TableBuilder) -> None:
        """Test that one primary-key description yields exactly one constraint on it."""
        statement = builder.create_table("products", DESCRIPTIONS)

        assert statement.constraints == [("PRIMARY KEY", "id")]
        sql = DDLCompiler("mysql").compile(statement)[0]
        assert sql.count("PRIMARY KEY") == 1
        assert "PRIMARY KEY (id)" in sql

    def test_first_primary_key_wins(self, builder: TableBuilder) -> None:
        """Test that later primary-key descriptions are ignored."""
        descriptions = DESCRIPTIONS + [
            {"field": "code", "type": "varchar", "interface": "primary_key"},
        ]

        statement = builder.create_table("products", descriptions)

        assert statement.primary_key == "id"
        assert [column.name for column in statement.columns][-1] == "code"

    def test_no_primary_key(self, builder: TableBuilder) -> None:
        """Test a table without a primary-key description."""
        statement = builder.create_table("logs", DESCRIPTIONS[1:])

        assert statement.primary_key is None
        assert statement.constraints == []

    def test_column_resolution(self, builder: TableBuilder) -> None:
        """Test kinds, lengths and integer options."""
        columns = {column.name: column for column in builder.create_table("products", DESCRIPTIONS).columns}

        assert columns["id"].kind == "INT"
        assert columns["id"].length is None
        assert columns["id"].auto_increment is True
        assert columns["id"].nullable is False
        assert columns["title"].length == 255
        assert columns["price"].length == "8,2"
        assert columns["body"].nullable is False


class TestAlterAndBuild:
    """Tests for alter_table, drop_table and build_table."""

    def test_alter_table(self, builder: TableBuilder) -> None:
        """Test that add, change and drop lists become the statement."""
        statement = builder.alter_table(
            "products",
            {
                "add": [{"field": "sku", "type": "char", "interface": "text-input", "length": 8}],
                "change": [{"field": "title", "type": "varchar", "interface": "text-input", "length": 64}],
                "drop": ["body"],
            },
        )

        assert [c.name for c in statement.add] == ["sku"]
        assert statement.change[0].length == 64
        assert statement.drop == ["body"]

    def test_build_table_returns_sql(self, builder: TableBuilder) -> None:
        """Test that build_table hands the statement to the schema source."""
        sql = builder.build_table(builder.drop_table("products"))

        assert isinstance(builder.drop_table("products"), DropTableStatement)
        assert sql == ["DROP TABLE products"]

    def test_build_table_propagates_adapter_failure(self) -> None:
        """Test that adapter failures reach the caller unchanged."""
        builder = TableBuilder(SchemaManager(CatalogSchemaSource("sqlite")))
        statement = builder.alter_table(
            "products",
            {"change": [{"field": "title", "type": "varchar", "interface": "text-input"}]},
        )

        with pytest.raises(AdapterExecutionFailure):
            builder.build_table(statement)
