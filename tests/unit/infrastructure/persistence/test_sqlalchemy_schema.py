"""Unit tests for SQLAlchemySchemaSource over an in-memory SQLite database."""

import pytest
from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from schemaflow.core.exceptions import AdapterExecutionFailure
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.persistence.record_store import SQLAlchemyRecordStore
from schemaflow.infrastructure.persistence.sqlalchemy_schema import SQLAlchemySchemaSource
from schemaflow.infrastructure.persistence.table_builder import TableBuilder


@pytest.fixture
def source(engine: Engine) -> SQLAlchemySchemaSource:
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE notes (id INTEGER NOT NULL, body TEXT, PRIMARY KEY (id))"))
    return SQLAlchemySchemaSource(engine)


class TestCollections:
    """Tests for collection lookups."""

    def test_missing_collection_is_none(self, source: SQLAlchemySchemaSource) -> None:
        """Test that absence is reported as None."""
        assert source.get_collection("missing") is None
        assert not source.collection_exists("missing")

    def test_unmanaged_table(self, source: SQLAlchemySchemaSource) -> None:
        """Test that a table without metadata is an unmanaged collection."""
        assert source.get_collection("notes") == {"collection": "notes", "managed": False}

    def test_metadata_row(self, source: SQLAlchemySchemaSource, store: SQLAlchemyRecordStore) -> None:
        """Test that the core_collections row is returned when present."""
        store.insert("core_collections", {"collection": "notes", "managed": True, "note": "Memo pad"})

        row = source.get_collection("notes")

        assert row["managed"] is True
        assert row["note"] == "Memo pad"

    def test_get_collections_lists_tables(self, source: SQLAlchemySchemaSource) -> None:
        """Test that every table is a collection."""
        names = {row["collection"] for row in source.get_collections()}

        assert {"notes", "core_users", "core_fields"} <= names


class TestFields:
    """Tests for field rows."""

    def test_inspected_columns(self, source: SQLAlchemySchemaSource) -> None:
        """Test that columns are read from the database."""
        rows = {row["field"]: row for row in source.get_fields("notes")}

        assert rows["id"]["key"] == "PRI"
        assert rows["id"]["type"] == "integer"
        assert rows["body"]["type"] == "text"
        assert rows["body"]["key"] == ""

    def test_metadata_overrides_and_aliases(
        self, source: SQLAlchemySchemaSource, store: SQLAlchemyRecordStore
    ) -> None:
        """Test that metadata adds logical types and alias fields."""
        store.insert(
            "core_fields",
            {"collection": "notes", "field": "body", "type": "json", "interface": "json"},
        )
        store.insert(
            "core_fields",
            {"collection": "notes", "field": "comments", "type": "alias", "interface": "one-to-many"},
        )

        rows = {row["field"]: row for row in source.get_fields("notes")}

        assert rows["body"]["type"] == "json"
        assert rows["body"]["interface"] == "json"
        assert rows["comments"]["type"] == "alias"
        assert [row["field"] for row in source.get_fields("notes", {"field": "id"})] == ["id"]

    def test_relations_from_both_sides(
        self, source: SQLAlchemySchemaSource, store: SQLAlchemyRecordStore
    ) -> None:
        """Test that relations are returned when the collection is on either side."""
        store.insert("core_relations", {"collection_a": "notes", "field_a": "author", "collection_b": "core_users"})
        store.insert("core_relations", {"collection_a": "comments", "field_a": "note", "collection_b": "notes"})
        store.insert("core_relations", {"collection_a": "x", "field_a": "y", "collection_b": "z"})

        assert len(source.get_relations("notes")) == 2

    def test_schema_manager_over_source(self, source: SQLAlchemySchemaSource) -> None:
        """Test that the schema manager builds fields from inspected columns."""
        manager = SchemaManager(source)

        collection = manager.get_collection("notes")

        assert collection.managed is False
        assert collection.primary_key_name == "id"
        assert collection.get_field("body").interface.name == "textarea"


class TestDDL:
    """Tests for DDL execution."""

    def test_execute_create(self, engine: Engine) -> None:
        """Test that a built table exists afterwards."""
        source = SQLAlchemySchemaSource(engine)
        builder = TableBuilder(SchemaManager(source))
        statement = builder.create_table(
            "products",
            [
                {"field": "id", "type": "integer", "interface": "primary_key"},
                {"field": "name", "type": "varchar", "interface": "text-input"},
            ],
        )

        sql = builder.build_table(statement)

        assert sql[0].startswith("CREATE TABLE products")
        assert source.collection_exists("products")

    def test_execute_failure_is_wrapped(self, source: SQLAlchemySchemaSource) -> None:
        """Test that driver errors become AdapterExecutionFailure with the cause kept."""
        builder = TableBuilder(SchemaManager(source))
        statement = builder.create_table(
            "notes", [{"field": "id", "type": "integer", "interface": "primary_key"}]
        )

        with pytest.raises(AdapterExecutionFailure) as exc_info:
            source.execute(statement)

        assert exc_info.value.operation == "create_table"
        assert exc_info.value.collection == "notes"
        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)

    def test_sqlite_primary_key_changes_fail(self, source: SQLAlchemySchemaSource) -> None:
        """Test that sqlite rejects primary key changes on existing tables."""
        with pytest.raises(AdapterExecutionFailure):
            source.add_primary_key("notes", "body")
        with pytest.raises(AdapterExecutionFailure):
            source.drop_primary_key("notes", "id")

    def test_type_catalog_follows_engine(self, source: SQLAlchemySchemaSource) -> None:
        """Test that the catalog matches the engine dialect."""
        assert source.get_data_type("json") == "TEXT"
        assert source.get_column_default_length("varchar") == 255
