"""Unit tests for the record lifecycle hooks."""

import pytest

from schemaflow.core.hooks import Emitter, RecordEvent, before
from schemaflow.domain.entities.payload import Payload
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.auth.acl import StaticAcl
from schemaflow.infrastructure.hooks.record_hooks import (
    DataTypeHooks,
    PasswordHooks,
    SlugHooks,
    TimestampHooks,
    decode_array,
    encode_array,
)

NOW = "2024-01-02 03:04:05"


def fake_hasher(value: str) -> str:
    return f"hashed:{value}"


@pytest.fixture
def timestamps(schema_manager: SchemaManager, acl: StaticAcl) -> TimestampHooks:
    return TimestampHooks(schema_manager, acl, clock=lambda: NOW)


class TestTimestampHooks:
    """Tests for date and user stamping."""

    def test_insert_stamps_dates_and_users(self, timestamps: TimestampHooks) -> None:
        """Test that every system field is stamped on insert."""
        payload = timestamps.on_insert(Payload({"title": "Hello"}, collection_name="articles"))

        assert payload.data == {
            "title": "Hello",
            "created_on": NOW,
            "modified_on": NOW,
            "created_by": 5,
            "modified_by": 5,
        }

    def test_users_are_not_user_stamped(self, timestamps: TimestampHooks) -> None:
        """Test that the users collection only gets date stamps."""
        payload = timestamps.on_insert(Payload({"email": "a@b.c"}, collection_name="core_users"))

        assert payload["created_on"] == NOW
        assert "created_by" not in payload
        assert "modified_by" not in payload

    def test_update_stamps_modification_only(self, timestamps: TimestampHooks) -> None:
        """Test that update leaves the creation fields alone."""
        payload = timestamps.on_update(Payload({"id": 1}, collection_name="articles"))

        assert payload.data == {"id": 1, "modified_on": NOW, "modified_by": 5}

    def test_file_upload_date_is_kept(self, timestamps: TimestampHooks) -> None:
        """Test that updating a file never rewrites its upload date."""
        payload = timestamps.on_update(
            Payload({"id": 3, "date_uploaded": NOW}, collection_name="core_files")
        )

        assert "date_uploaded" not in payload


class TestDataTypeHooks:
    """Tests for JSON, array and boolean coercion."""

    def test_encode(self, schema_manager: SchemaManager) -> None:
        """Test that structured values are encoded before write."""
        hooks = DataTypeHooks(schema_manager)
        payload = Payload(
            {"tags": ["a", "b"], "meta": {"a": 1}, "title": "t", "unknown": [1]},
            collection_name="articles",
        )

        data = hooks.encode(payload).data

        assert data == {"tags": "a,b", "meta": '{"a": 1}', "title": "t", "unknown": [1]}

    def test_decode(self, schema_manager: SchemaManager) -> None:
        """Test that stored strings are decoded on select."""
        hooks = DataTypeHooks(schema_manager)
        rows = [
            {"tags": "a,b", "meta": '{"a": 1}', "published": "0"},
            {"tags": "", "meta": "", "published": None},
            {"meta": "{broken"},
        ]

        data = hooks.decode(Payload(rows, collection_name="articles")).data

        assert data == [
            {"tags": ["a", "b"], "meta": {"a": 1}, "published": False},
            {"tags": [], "meta": None, "published": None},
            {"meta": "{broken"},
        ]

    def test_array_helpers(self) -> None:
        """Test array encoding edge cases."""
        assert encode_array(("x", 1)) == "x,1"
        assert encode_array("already") == "already"
        assert decode_array(None) is None
        assert decode_array(["x"]) == ["x"]


class TestPasswordHooks:
    """Tests for password hashing."""

    def test_password_fields_are_hashed(self, schema_manager: SchemaManager) -> None:
        """Test that password-interface fields are hashed and others untouched."""
        hooks = PasswordHooks(schema_manager, fake_hasher)
        payload = Payload({"secret": "pw", "title": "t"}, collection_name="articles")

        data = hooks.hash_password_fields(payload).data

        assert data == {"secret": "hashed:pw", "title": "t"}

    def test_none_password_is_kept(self, schema_manager: SchemaManager) -> None:
        """Test that a missing password value is not hashed."""
        hooks = PasswordHooks(schema_manager, fake_hasher)

        payload = hooks.hash_password_fields(Payload({"secret": None}, collection_name="articles"))

        assert payload["secret"] is None

    def test_user_password_is_hashed_once(self, schema_manager: SchemaManager) -> None:
        """Test that the generic and users listeners never hash twice."""
        emitter = Emitter()
        PasswordHooks(schema_manager, fake_hasher).register(emitter)
        payload = Payload({"password": "pw"}, collection_name="core_users")

        payload = emitter.apply(before(RecordEvent.INSERT), payload)
        payload = emitter.apply(before(RecordEvent.INSERT, "core_users"), payload)

        assert payload["password"] == "hashed:pw"

    def test_empty_user_password_is_kept(self, schema_manager: SchemaManager) -> None:
        """Test that an empty users password is left alone."""
        hooks = PasswordHooks(schema_manager, fake_hasher)

        payload = hooks.hash_user_password(Payload({"password": ""}, collection_name="core_users"))

        assert payload["password"] == ""


class TestSlugHooks:
    """Tests for slug derivation."""

    def test_insert(self, schema_manager: SchemaManager) -> None:
        """Test that the slug follows its mirrored field."""
        payload = SlugHooks(schema_manager).on_insert(
            Payload({"title": "Hello World"}, collection_name="articles")
        )

        assert payload["slug"] == "hello-world"

    def test_missing_source_field(self, schema_manager: SchemaManager) -> None:
        """Test that nothing happens without the mirrored field."""
        payload = SlugHooks(schema_manager).on_update(Payload({"id": 1}, collection_name="articles"))

        assert "slug" not in payload

    def test_only_on_creation(self, make_schema_source) -> None:
        """Test that a creation-only slug is not updated."""
        source = make_schema_source(
            {
                "pages": [
                    {"field": "id", "type": "integer", "interface": "primary_key", "key": "PRI"},
                    {"field": "title", "type": "varchar", "interface": "text-input"},
                    {
                        "field": "slug",
                        "type": "varchar",
                        "interface": "slug",
                        "options": {"mirrored_field": "title", "only_on_creation": True},
                    },
                ]
            }
        )
        hooks = SlugHooks(SchemaManager(source))

        inserted = hooks.on_insert(Payload({"title": "First"}, collection_name="pages"))
        updated = hooks.on_update(Payload({"id": 1, "title": "Second"}, collection_name="pages"))

        assert inserted["slug"] == "first"
        assert "slug" not in updated
