"""Unit tests for SQLAlchemyRecordStore and the system tables."""

from datetime import datetime

import pytest
from sqlalchemy import Engine, inspect

from schemaflow.core.config import Settings
from schemaflow.core.exceptions import AdapterExecutionFailure, CollectionNotFound
from schemaflow.infrastructure.persistence.record_store import SQLAlchemyRecordStore
from schemaflow.infrastructure.persistence.system_tables import (
    ADMINISTRATOR_GROUP_NAME,
    drop_system_tables,
    seed_default_groups,
)


class TestRecordStore:
    """Tests for row access."""

    def test_insert_and_find(self, store: SQLAlchemyRecordStore) -> None:
        """Test that insert returns the generated key and find reads the row back."""
        file_id = store.insert("core_files", {"filename": "a.png", "title": "A"})

        row = store.find("core_files", file_id)

        assert row["filename"] == "a.png"
        assert row["storage"] == "local"

    def test_unknown_keys_are_dropped(self, store: SQLAlchemyRecordStore) -> None:
        """Test that keys without a column are ignored on write."""
        file_id = store.insert("core_files", {"filename": "a.png", "url": "/a.png"})

        assert "url" not in store.find("core_files", file_id)

    def test_date_strings_are_converted(self, store: SQLAlchemyRecordStore) -> None:
        """Test that ISO strings are accepted for datetime columns."""
        file_id = store.insert("core_files", {"filename": "a.png", "date_uploaded": "2024-01-02 03:04:05"})

        assert store.find("core_files", file_id)["date_uploaded"] == datetime(2024, 1, 2, 3, 4, 5)

    def test_find_many_and_select(self, store: SQLAlchemyRecordStore) -> None:
        """Test batched lookup and filtered selects."""
        ids = [store.insert("core_files", {"filename": f"{n}.png", "type": "image"}) for n in range(3)]

        assert len(store.find_many("core_files", ids[:2])) == 2
        assert store.find_many("core_files", []) == []
        assert [row["filename"] for row in store.select("core_files", ["filename"], {"id": ids[2]})] == ["2.png"]
        assert len(store.select("core_files", where={"id": ids})) == 3

    def test_update_and_delete(self, store: SQLAlchemyRecordStore) -> None:
        """Test row counts of update and delete."""
        file_id = store.insert("core_files", {"filename": "a.png"})

        assert store.update("core_files", file_id, {"id": file_id, "title": "New"}) == 1
        assert store.find("core_files", file_id)["title"] == "New"
        assert store.delete("core_files", [file_id]) == 1
        assert store.find("core_files", file_id) is None
        assert store.delete("core_files", []) == 0

    def test_missing_table(self, store: SQLAlchemyRecordStore) -> None:
        """Test that an unknown collection raises CollectionNotFound."""
        with pytest.raises(CollectionNotFound):
            store.find("missing", 1)

    def test_integrity_error_is_wrapped(self, store: SQLAlchemyRecordStore) -> None:
        """Test that driver errors become AdapterExecutionFailure."""
        with pytest.raises(AdapterExecutionFailure) as exc_info:
            store.insert("core_groups", {"name": "public"})

        assert exc_info.value.operation == "insert"

    def test_find_none(self, store: SQLAlchemyRecordStore) -> None:
        """Test that looking up no id returns None without a query."""
        assert store.find("core_users", None) is None


class TestSystemTables:
    """Tests for installing the system tables."""

    def test_default_groups(self, store: SQLAlchemyRecordStore) -> None:
        """Test that the administrator and public groups exist after install."""
        groups = {row["name"]: row["id"] for row in store.select("core_groups")}

        assert groups[ADMINISTRATOR_GROUP_NAME] == 1
        assert "public" in groups

    def test_seeding_twice_creates_nothing(self, engine: Engine, settings: Settings) -> None:
        """Test that seeding is idempotent."""
        assert seed_default_groups(engine, settings) == []

    def test_drop_system_tables(self, engine: Engine) -> None:
        """Test that every system table is removed."""
        drop_system_tables(engine)

        assert not inspect(engine).has_table("core_users")
