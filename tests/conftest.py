"""Pytest configuration for all tests."""

from typing import Any, Generator, Iterable, Optional

import pytest
from sqlalchemy import Engine

from schemaflow.application.bootstrap import Application, create_application
from schemaflow.core.config import Settings, get_settings
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.auth.acl import StaticAcl
from schemaflow.infrastructure.persistence.database import create_db_engine
from schemaflow.infrastructure.persistence.record_store import SQLAlchemyRecordStore
from schemaflow.infrastructure.persistence.schema_source import CatalogSchemaSource
from schemaflow.infrastructure.persistence.system_tables import (
    create_system_tables,
    seed_default_groups,
)

ARTICLE_FIELDS = [
    {"field": "id", "type": "integer", "interface": "primary_key", "key": "PRI", "nullable": False},
    {"field": "title", "type": "varchar", "interface": "text-input", "length": 100},
    {"field": "slug", "type": "varchar", "interface": "slug", "options": {"mirrored_field": "title"}},
    {"field": "tags", "type": "array", "interface": "tags"},
    {"field": "meta", "type": "json", "interface": "json"},
    {"field": "published", "type": "boolean", "interface": "toggle"},
    {"field": "secret", "type": "varchar", "interface": "password"},
    {"field": "created_on", "type": "datetime", "interface": "date_created"},
    {"field": "modified_on", "type": "datetime", "interface": "date_modified"},
    {"field": "created_by", "type": "integer", "interface": "user_created"},
    {"field": "modified_by", "type": "integer", "interface": "user_modified"},
]

USER_FIELDS = [
    {"field": "id", "type": "integer", "interface": "primary_key", "key": "PRI"},
    {"field": "email", "type": "varchar", "interface": "text-input"},
    {"field": "password", "type": "varchar", "interface": "password"},
    {"field": "group", "type": "integer", "interface": "numeric"},
    {"field": "created_on", "type": "datetime", "interface": "date_created"},
    {"field": "created_by", "type": "integer", "interface": "user_created"},
    {"field": "modified_by", "type": "integer", "interface": "user_modified"},
]

FILE_FIELDS = [
    {"field": "id", "type": "integer", "interface": "primary_key", "key": "PRI"},
    {"field": "filename", "type": "varchar", "interface": "text-input"},
    {"field": "date_uploaded", "type": "datetime", "interface": "datetime"},
]

LANGUAGE_FIELDS = [
    {"field": "id", "type": "integer", "interface": "primary_key", "key": "PRI"},
    {"field": "code", "type": "varchar", "interface": "text-input"},
]


class InMemorySchemaSource(CatalogSchemaSource):
    """Schema source serving field rows from a dict, counting source calls."""

    def __init__(
        self,
        collections: dict[str, list[dict[str, Any]]],
        relations: Optional[Iterable[dict[str, Any]]] = None,
        dialect: str = "sqlite",
    ) -> None:
        super().__init__(dialect)
        self.collections = collections
        self.relations = list(relations or [])
        self.executed: list[Any] = []
        self.calls: dict[str, int] = {"get_collection": 0, "get_fields": 0}

    def get_collection(self, name: str) -> Optional[dict[str, Any]]:
        self.calls["get_collection"] += 1
        if name not in self.collections:
            return None
        return {"collection": name}

    def get_collections(self) -> list[dict[str, Any]]:
        return [{"collection": name} for name in self.collections]

    def get_fields(self, collection: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        self.calls["get_fields"] += 1
        rows = [dict(row, collection=collection) for row in self.collections.get(collection, [])]
        if params and "field" in params:
            rows = [row for row in rows if row["field"] == params["field"]]
        return rows

    def get_all_fields(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for name in self.collections:
            rows.extend(self.get_fields(name))
        return rows

    def get_relations(self, collection: str) -> list[dict[str, Any]]:
        return [
            row for row in self.relations
            if collection in (row.get("collection_a"), row.get("collection_b"))
        ]

    def collection_exists(self, name: str) -> bool:
        return name in self.collections

    def execute(self, statement: Any) -> list[str]:
        self.executed.append(statement)
        return super().execute(statement)


class RecordingCache:
    """Cache pool that records every invalidate_tags call."""

    def __init__(self) -> None:
        self.invalidated: list[list[str]] = []

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        self.invalidated.append(list(tags))
        return 0


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep every test on testing settings with uncached console logging."""
    monkeypatch.setenv("SCHEMAFLOW_ENVIRONMENT", "testing")
    monkeypatch.setenv("SCHEMAFLOW_LOG_FORMAT", "console")
    monkeypatch.setenv("SCHEMAFLOW_DATABASE_URL", "sqlite:///:memory:")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        environment="testing",
        log_format="console",
    )


@pytest.fixture
def schema_source() -> InMemorySchemaSource:
    return InMemorySchemaSource(
        {
            "articles": ARTICLE_FIELDS,
            "core_users": USER_FIELDS,
            "core_files": FILE_FIELDS,
            "languages": LANGUAGE_FIELDS,
        }
    )


@pytest.fixture
def schema_manager(schema_source: InMemorySchemaSource) -> SchemaManager:
    return SchemaManager(schema_source)


@pytest.fixture
def make_schema_source():
    """Factory for schema sources with custom collections and relations."""
    return InMemorySchemaSource


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def acl() -> StaticAcl:
    return StaticAcl(user_id=5, group_id=3)


@pytest.fixture
def engine(settings: Settings) -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the system tables and default groups."""
    engine = create_db_engine(settings)
    create_system_tables(engine)
    seed_default_groups(engine, settings)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine: Engine) -> SQLAlchemyRecordStore:
    return SQLAlchemyRecordStore(engine)


def fake_hasher(value: str) -> str:
    return f"hashed:{value}"


@pytest.fixture
def app(settings: Settings, engine: Engine, acl: StaticAcl, cache: RecordingCache) -> Application:
    """Fully wired application over the in-memory database."""
    return create_application(
        settings=settings,
        engine=engine,
        acl=acl,
        cache=cache,
        hasher=fake_hasher,
    )
