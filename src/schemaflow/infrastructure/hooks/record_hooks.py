"""Built-in record hooks that apply to every collection.

- TimestampHooks: date/user created and modified stamping
- DataTypeHooks: JSON, array and boolean coercion
- PasswordHooks: hashing of password fields
- SlugHooks: slug derivation from a mirrored field

Each class takes its dependencies in the constructor and registers its
listeners with ``register(emitter)``.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from schemaflow.core.hooks import Emitter, Priority, RecordEvent, before
from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.field import InterfaceKind
from schemaflow.domain.entities.payload import Payload
from schemaflow.domain.services.schema_manager import (
    DATETIME_FORMAT,
    SchemaManager,
    SystemCollections,
    cast_boolean,
)
from schemaflow.domain.services.slug_generator import slugify
from schemaflow.infrastructure.auth.acl import Acl
from schemaflow.infrastructure.auth.password_hasher import hash_password

logger = get_logger(__name__)

ARRAY_SEPARATOR = ","


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime(DATETIME_FORMAT)


class TimestampHooks:
    """Stamp system date and user fields before insert and update.

    Runs at HIGH priority so the stamped values go through type coercion
    like any other value. The users collection is never user-stamped: a
    user creating their own row would otherwise reference a row that does
    not exist yet.
    """

    def __init__(
        self,
        schema_manager: SchemaManager,
        acl: Acl,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self.schema_manager = schema_manager
        self.acl = acl
        self.clock = clock

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(before(RecordEvent.INSERT), self.on_insert, Priority.HIGH),
            emitter.add_filter(before(RecordEvent.UPDATE), self.on_update, Priority.HIGH),
        ]

    def on_insert(self, payload: Payload) -> Payload:
        collection = self.schema_manager.get_collection(payload.collection_name)
        now = self.clock()

        for item in (collection.get_date_create_field(), collection.get_date_update_field()):
            if item:
                payload[item.name] = now

        if collection.name == SystemCollections.USERS:
            return payload

        user_id = self.acl.get_user_id()
        for item in (collection.get_user_create_field(), collection.get_user_update_field()):
            if item:
                payload[item.name] = user_id

        return payload

    def on_update(self, payload: Payload) -> Payload:
        collection = self.schema_manager.get_collection(payload.collection_name)

        date_modified = collection.get_date_update_field()
        if date_modified:
            payload[date_modified.name] = self.clock()

        if collection.name != SystemCollections.USERS:
            user_modified = collection.get_user_update_field()
            if user_modified:
                payload[user_modified.name] = self.acl.get_user_id()

        # The upload date of a file never changes
        if collection.name == SystemCollections.FILES:
            payload.remove("date_uploaded")

        return payload


class DataTypeHooks:
    """Convert JSON, array and boolean fields between storage and structured form.

    Before insert and update, structured values are encoded (arrays joined
    with commas, JSON dumped). On select, stored strings are decoded back and
    booleans are cast. Array items containing a comma cannot be told apart
    from two items.
    """

    def __init__(self, schema_manager: SchemaManager) -> None:
        self.schema_manager = schema_manager

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(before(RecordEvent.INSERT), self.encode),
            emitter.add_filter(before(RecordEvent.UPDATE), self.encode),
            emitter.add_filter(RecordEvent.SELECT, self.decode),
        ]

    def encode(self, payload: Payload) -> Payload:
        collection = self.schema_manager.get_collection(payload.collection_name)
        data = dict(payload.data)

        for item in collection.get_fields(list(data)):
            value = data[item.name]
            if item.is_json():
                data[item.name] = encode_json(value)
            elif item.is_array():
                data[item.name] = encode_array(value)

        return payload.replace(data)

    def decode(self, payload: Payload) -> Payload:
        collection = self.schema_manager.get_collection(payload.collection_name)
        rows = []

        for row in payload.data or []:
            row = dict(row)
            for item in collection.get_fields(list(row)):
                value = row[item.name]
                if item.is_json():
                    row[item.name] = decode_json(value, collection.name, item.name)
                elif item.is_boolean():
                    row[item.name] = None if value is None else cast_boolean(value)
                elif item.is_array():
                    row[item.name] = decode_array(value)
            rows.append(row)

        return payload.replace(rows)


def encode_json(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def decode_json(value: Any, collection: str = "", field: str = "") -> Any:
    if not isinstance(value, str):
        return value
    if value == "":
        return None
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("Stored value is not valid JSON", collection=collection, field=field)
        return value


def encode_array(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ARRAY_SEPARATOR.join(str(item) for item in value)
    return value


def decode_array(value: Any) -> Any:
    if value is None or isinstance(value, list):
        return value
    text_value = str(value)
    if text_value == "":
        return []
    return text_value.split(ARRAY_SEPARATOR)


class PasswordHooks:
    """Hash passwords before they are stored.

    Password-interface fields of non-system collections are hashed on every
    insert and update, even if the value did not change. The users
    collection hashes its ``password`` column.
    """

    def __init__(
        self,
        schema_manager: SchemaManager,
        hasher: Callable[[str], str] = hash_password,
    ) -> None:
        self.schema_manager = schema_manager
        self.hasher = hasher

    def register(self, emitter: Emitter) -> list[str]:
        users = SystemCollections.USERS
        return [
            emitter.add_filter(before(RecordEvent.INSERT), self.hash_password_fields),
            emitter.add_filter(before(RecordEvent.UPDATE), self.hash_password_fields),
            emitter.add_filter(before(RecordEvent.INSERT, users), self.hash_user_password),
            emitter.add_filter(before(RecordEvent.UPDATE, users), self.hash_user_password),
        ]

    def hash_password_fields(self, payload: Payload) -> Payload:
        name = payload.collection_name
        if self.schema_manager.is_system_collection(name):
            return payload

        collection = self.schema_manager.get_collection(name)
        for key in list(payload):
            item = collection.get_field(key)
            if item is None or item.interface.kind is not InterfaceKind.PASSWORD:
                continue
            if payload[key] is not None:
                payload.set(key, self.hasher(str(payload[key])))

        return payload

    def hash_user_password(self, payload: Payload) -> Payload:
        if payload.has("password") and payload["password"]:
            payload["password"] = self.hasher(str(payload["password"]))
        return payload


class SlugHooks:
    """Derive slug fields from their ``mirrored_field`` option.

    A slug with the ``only_on_creation`` option is left alone on update.
    Nothing happens when the mirrored field is not part of the payload.
    """

    def __init__(self, schema_manager: SchemaManager, slugger: Optional[Callable[[Any], str]] = None) -> None:
        self.schema_manager = schema_manager
        self.slugger = slugger or slugify

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(before(RecordEvent.INSERT), self.on_insert),
            emitter.add_filter(before(RecordEvent.UPDATE), self.on_update),
        ]

    def on_insert(self, payload: Payload) -> Payload:
        return self.slugify_fields(payload, inserting=True)

    def on_update(self, payload: Payload) -> Payload:
        return self.slugify_fields(payload, inserting=False)

    def slugify_fields(self, payload: Payload, inserting: bool) -> Payload:
        collection = self.schema_manager.get_collection(payload.collection_name)

        for item in collection.get_fields_by_interface(InterfaceKind.SLUG):
            source = item.get_options("mirrored_field")
            if not source or not payload.has(source):
                continue

            if not inserting and cast_boolean(item.get_options("only_on_creation", False)):
                continue

            payload.set(item.name, self.slugger(payload[source] or ""))

        return payload
