"""Composition root.

Builds the engine, the schema manager, the emitter with its built-in
hooks and the services, and hands them over as one ``Application``.
The emitter is populated once here and never torn down.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import Engine

from schemaflow.application.services.collection_service import CollectionService
from schemaflow.application.services.record_service import RecordService
from schemaflow.core.config import Settings, get_settings
from schemaflow.core.hooks import Emitter
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.auth.acl import Acl, StaticAcl
from schemaflow.infrastructure.cache.tagged_cache import CachePool, TaggedCache
from schemaflow.infrastructure.hooks import register_builtin_hooks
from schemaflow.infrastructure.persistence.database import create_db_engine
from schemaflow.infrastructure.persistence.record_store import SQLAlchemyRecordStore
from schemaflow.infrastructure.persistence.sqlalchemy_schema import SQLAlchemySchemaSource
from schemaflow.infrastructure.persistence.system_tables import (
    create_system_tables,
    seed_default_groups,
)
from schemaflow.infrastructure.persistence.table_builder import TableBuilder

logger = get_logger(__name__)


@dataclass
class Application:
    settings: Settings
    engine: Engine
    acl: Acl
    cache: CachePool
    emitter: Emitter
    schema_manager: SchemaManager
    table_builder: TableBuilder
    store: SQLAlchemyRecordStore
    records: RecordService
    collections: CollectionService


def create_application(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    acl: Optional[Acl] = None,
    cache: Optional[CachePool] = None,
    hasher: Optional[Callable[[str], str]] = None,
    install: bool = False,
) -> Application:
    """Wire every component together.

    Args:
        settings: Defaults to ``get_settings()``.
        engine: Defaults to an engine for ``settings.database_url``.
        acl: Caller's ACL; defaults to an anonymous ``StaticAcl``.
        cache: Cache pool; defaults to an in-memory ``TaggedCache``.
        hasher: Password hash function; defaults to Argon2.
        install: Create the system tables and default groups first.
    """
    settings = settings or get_settings()
    engine = engine or create_db_engine(settings)
    acl = acl or StaticAcl()
    cache = cache or TaggedCache(ttl_seconds=settings.cache_ttl_seconds)

    if install:
        create_system_tables(engine)
        seed_default_groups(engine, settings)

    schema_manager = SchemaManager(SQLAlchemySchemaSource(engine))
    table_builder = TableBuilder(schema_manager)
    store = SQLAlchemyRecordStore(engine)
    emitter = Emitter()

    register_builtin_hooks(
        emitter,
        schema_manager=schema_manager,
        acl=acl,
        store=store,
        cache=cache,
        settings=settings,
        hasher=hasher,
    )

    app = Application(
        settings=settings,
        engine=engine,
        acl=acl,
        cache=cache,
        emitter=emitter,
        schema_manager=schema_manager,
        table_builder=table_builder,
        store=store,
        records=RecordService(schema_manager, emitter, store),
        collections=CollectionService(schema_manager, table_builder, emitter, store),
    )
    logger.info("Application created", app_name=settings.app_name, dialect=engine.dialect.name)
    return app
