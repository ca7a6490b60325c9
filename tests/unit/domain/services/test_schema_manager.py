"""Unit tests for SchemaManager."""

from datetime import date, datetime

import pytest

from schemaflow.core.exceptions import CollectionNotFound
from schemaflow.domain.entities.field import Cardinality, InterfaceKind, RelationSide
from schemaflow.domain.services.schema_manager import SchemaManager, SystemCollections


class TestCollections:
    """Tests for collection loading and caching."""

    def test_missing_collection_raises(self, schema_manager: SchemaManager) -> None:
        """Test that an absent collection raises CollectionNotFound."""
        with pytest.raises(CollectionNotFound) as exc_info:
            schema_manager.get_collection("missing")

        assert exc_info.value.collection == "missing"

    def test_collection_is_cached(self, schema_manager: SchemaManager, schema_source) -> None:
        """Test that a collection is loaded from the source once."""
        first = schema_manager.get_collection("articles")
        second = schema_manager.get_collection("articles")

        assert first is second
        assert schema_source.calls["get_collection"] == 1

    def test_fields_are_loaded_lazily(self, schema_manager: SchemaManager, schema_source) -> None:
        """Test that fields are only fetched when accessed."""
        collection = schema_manager.get_collection("articles")
        assert schema_source.calls["get_fields"] == 0

        assert collection.primary_key_name == "id"
        assert schema_source.calls["get_fields"] == 1

    def test_skip_cache_reloads(self, schema_manager: SchemaManager, schema_source) -> None:
        """Test that skip_cache goes back to the source and replaces the entry."""
        first = schema_manager.get_collection("articles")
        schema_source.collections["articles"] = schema_source.collections["articles"][:2]

        second = schema_manager.get_collection("articles", skip_cache=True)

        assert second is not first
        assert second.field_names == ["id", "title"]

    def test_forget_collection(self, schema_manager: SchemaManager, schema_source) -> None:
        """Test that a forgotten collection is loaded again."""
        schema_manager.get_collection("articles")
        schema_manager.forget_collection("articles")
        schema_manager.get_collection("articles")

        assert schema_source.calls["get_collection"] == 2

    def test_get_collections(self, schema_manager: SchemaManager) -> None:
        """Test that every collection is listed and flagged as system or not."""
        collections = schema_manager.get_collections()

        assert set(collections) == {"articles", "core_users", "core_files", "languages"}
        assert collections["core_users"].system is True
        assert collections["articles"].system is False

    def test_system_collections(self, schema_manager: SchemaManager) -> None:
        """Test the reserved collection names."""
        assert schema_manager.is_system_collection(SystemCollections.USERS)
        assert schema_manager.is_system_collection("core_activity_read")
        assert not schema_manager.is_system_collection("users")
        assert not schema_manager.is_system_collection("articles")


class TestFields:
    """Tests for field construction and relation resolution."""

    def test_primary_key_from_key_column(self, make_schema_source) -> None:
        """Test that a PRI key column becomes a required primary key field."""
        manager = SchemaManager(
            make_schema_source({"tags": [{"field": "tag_id", "type": "integer", "key": "PRI"}]})
        )

        field = manager.get_collection("tags").get_field("tag_id")

        assert field.interface.kind is InterfaceKind.PRIMARY_KEY
        assert field.required is True
        assert manager.get_primary_key("tags") == "tag_id"

    def test_default_interface_and_null_default(self, make_schema_source) -> None:
        """Test that missing interfaces get the type default and 'NULL' defaults become None."""
        manager = SchemaManager(
            make_schema_source(
                {"things": [{"field": "flag", "type": "boolean", "default_value": "NULL"}]}
            )
        )

        field = manager.get_fields("things")[0]

        assert field.interface.name == "toggle"
        assert field.default_value is None

    def test_alias_fields_are_nullable(self, make_schema_source) -> None:
        """Test that alias fields are always nullable."""
        manager = SchemaManager(
            make_schema_source(
                {"things": [{"field": "comments", "type": "alias", "interface": "one-to-many", "nullable": False}]}
            )
        )

        assert manager.get_fields("things")[0].nullable is True

    def test_a_side_relation_wins(self, make_schema_source) -> None:
        """Test that a field that owns one relation and is the target of another gets the owned one."""
        source = make_schema_source(
            {
                "articles": [
                    {"field": "id", "type": "integer", "key": "PRI"},
                    {"field": "author", "type": "integer", "interface": "many-to-one"},
                    {"field": "comments", "type": "alias", "interface": "one-to-many"},
                ],
            },
            relations=[
                {"id": 1, "collection_a": "comments", "field_a": "post",
                 "collection_b": "articles", "field_b": "author"},
                {"id": 2, "collection_a": "articles", "field_a": "author",
                 "collection_b": "core_users", "field_b": None},
                {"id": 3, "collection_a": "comments", "field_a": "article",
                 "collection_b": "articles", "field_b": "comments"},
            ],
        )
        manager = SchemaManager(source)

        collection = manager.get_collection("articles")
        author = collection.get_field("author")
        comments = collection.get_field("comments")

        assert author.relation.side is RelationSide.A
        assert author.relation.related_collection == "core_users"
        assert comments.relation.side is RelationSide.B
        assert comments.relation.cardinality is Cardinality.ONE_TO_MANY
        assert collection.get_field("id").relation is None

    def test_get_field(self, schema_manager: SchemaManager) -> None:
        """Test single field lookup."""
        assert schema_manager.get_field("articles", "title").type == "varchar"
        assert schema_manager.get_field("articles", "nope") is None
        assert "slug" in schema_manager.get_collection("articles").field_names

    def test_all_fields_by_collection(self, schema_manager: SchemaManager) -> None:
        """Test grouping of all fields by collection."""
        grouped = schema_manager.get_all_fields_by_collection()

        assert [f.name for f in grouped["languages"]] == ["id", "code"]

    def test_has_system_date_field(self, schema_manager: SchemaManager) -> None:
        """Test date field detection."""
        assert schema_manager.has_system_date_field("articles")
        assert not schema_manager.has_system_date_field("languages")


class TestCasting:
    """Tests for value casting."""

    @pytest.mark.parametrize(
        ("value", "type_name", "expected"),
        [
            (True, "boolean", True),
            ("0", "bool", False),
            ("false", "boolean", False),
            ("42", "integer", 42),
            ("7", "year", 7),
            (None, "bigint", None),
            ("", "integer", None),
            ("12.5", "int", 12),
            (" 8 ", "smallint", 8),
            ("abc", "bigint", None),
            ("1.5", "double", 1.5),
            ("", "float", None),
            ("n/a", "real", None),
            (b"abc", "blob", "YWJj"),
            ("test", "blob", "dGVzdA=="),
            ("YWJj", "blob", "WVdKag=="),
            ("2024-05-06", "date", "2024-05-06"),
            (date(2024, 5, 6), "date", "2024-05-06"),
            (datetime(2024, 5, 6, 7, 8, 9), "datetime", "2024-05-06 07:08:09"),
            ("not a date", "datetime", None),
            ("", "time", None),
            ("10:00:00", "time", "10:00:00"),
            ("anything", "varchar", "anything"),
        ],
    )
    def test_cast_value(self, schema_manager: SchemaManager, value, type_name, expected) -> None:
        """Test casting per type family."""
        assert schema_manager.cast_value(value, type_name) == expected

    @pytest.mark.parametrize(
        ("value", "type_name"),
        [
            (True, "boolean"),
            (False, "bool"),
            ("2024-05-06", "date"),
            ("2024-05-06 07:08:09", "datetime"),
            (42, "integer"),
            (2.5, "float"),
        ],
    )
    def test_cast_is_idempotent(self, schema_manager: SchemaManager, value, type_name) -> None:
        """Test that casting an already cast value again changes nothing."""
        once = schema_manager.cast_value(value, type_name)

        assert schema_manager.cast_value(once, type_name) == once
        assert once == value

    @pytest.mark.parametrize(
        ("value", "type_name"),
        [("0000-00-00", "date"), ("0000-00-00 00:00:00", "datetime")],
    )
    def test_zero_date_is_absent(self, schema_manager: SchemaManager, value, type_name) -> None:
        """Test that the zero date sentinel becomes None however often it is cast."""
        once = schema_manager.cast_value(value, type_name)

        assert once is None
        assert schema_manager.cast_value(once, type_name) is None

    def test_cast_record_values_keeps_shape(self, schema_manager: SchemaManager) -> None:
        """Test that one record in gives one record out, a list gives a list."""
        fields = schema_manager.get_fields("articles")

        single = schema_manager.cast_record_values({"id": "3", "published": 1, "other": "x"}, fields)
        many = schema_manager.cast_record_values([{"id": "3"}, {"id": "4"}], fields)

        assert single == {"id": 3, "published": True, "other": "x"}
        assert many == [{"id": 3}, {"id": 4}]

    def test_cast_default_value(self, schema_manager: SchemaManager) -> None:
        """Test that the literal 'null' default becomes None."""
        assert schema_manager.cast_default_value("null", "varchar") is None
        assert schema_manager.cast_default_value("1", "integer") == 1
