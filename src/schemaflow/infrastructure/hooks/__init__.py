"""Infrastructure hooks module.

Contains the built-in lifecycle hooks and their registration.
"""

from typing import Callable, Optional

from schemaflow.core.config import Settings
from schemaflow.core.hooks import Emitter
from schemaflow.core.logging import get_logger
from schemaflow.domain.services.schema_manager import SchemaManager
from schemaflow.infrastructure.auth.acl import Acl
from schemaflow.infrastructure.auth.password_hasher import hash_password
from schemaflow.infrastructure.cache.tagged_cache import CachePool
from schemaflow.infrastructure.hooks.cache_hooks import CacheTagInvalidator
from schemaflow.infrastructure.hooks.record_hooks import (
    DataTypeHooks,
    PasswordHooks,
    SlugHooks,
    TimestampHooks,
)
from schemaflow.infrastructure.hooks.system_hooks import (
    FileHooks,
    GroupHooks,
    MessageHooks,
    ResponseHooks,
    TranslationHooks,
    UserHooks,
)
from schemaflow.infrastructure.persistence.record_store import RecordStore

logger = get_logger(__name__)


def register_builtin_hooks(
    emitter: Emitter,
    *,
    schema_manager: SchemaManager,
    acl: Acl,
    store: RecordStore,
    cache: CachePool,
    settings: Settings,
    hasher: Optional[Callable[[str], str]] = None,
) -> list[str]:
    """Register every built-in hook on the emitter.

    Call once, at startup, from the composition root.

    Returns:
        List of registered listener IDs.
    """
    handlers = [
        TimestampHooks(schema_manager, acl),
        DataTypeHooks(schema_manager),
        PasswordHooks(schema_manager, hasher or hash_password),
        SlugHooks(schema_manager),
        FileHooks(acl, store, settings),
        MessageHooks(store),
        UserHooks(acl, store, settings),
        GroupHooks(store),
        TranslationHooks(schema_manager),
        ResponseHooks(acl),
        CacheTagInvalidator(cache, schema_manager, store),
    ]

    listener_ids: list[str] = []
    for handler in handlers:
        listener_ids.extend(handler.register(emitter))

    logger.info(
        "Built-in hooks registered",
        handler_count=len(handlers),
        listener_count=len(listener_ids),
    )
    return listener_ids


__all__ = [
    "CacheTagInvalidator",
    "DataTypeHooks",
    "FileHooks",
    "GroupHooks",
    "MessageHooks",
    "PasswordHooks",
    "ResponseHooks",
    "SlugHooks",
    "TimestampHooks",
    "TranslationHooks",
    "UserHooks",
    "register_builtin_hooks",
]
