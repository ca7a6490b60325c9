"""Built-in hooks bound to system collections and application events.

- FileHooks: file URLs on select, upload/edit/delete authorization
- MessageHooks: attachment hydration
- UserHooks: private field redaction, public group and self-update gates
- GroupHooks: default permissions for new groups
- TranslationHooks: translation rows keyed by language
- ResponseHooks: public response marker, error logging
"""

from typing import Any, Optional

from schemaflow.core.config import Settings
from schemaflow.core.exceptions import Forbidden, MissingRelationTarget
from schemaflow.core.hooks import (
    AppEvent,
    Emitter,
    FileEvent,
    Priority,
    RecordEvent,
    before,
    event_name,
)
from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.field import Field, InterfaceKind
from schemaflow.domain.entities.payload import Payload
from schemaflow.domain.services.schema_manager import SchemaManager, SystemCollections
from schemaflow.infrastructure.auth.acl import Acl
from schemaflow.infrastructure.persistence.record_store import RecordStore

logger = get_logger(__name__)

# Non-image files whose thumbnails are rendered in the default image format
NON_IMAGE_THUMBNAIL_FORMATS = frozenset({"pdf", "psd", "tif", "tiff", "svg"})

PRIVATE_USER_FIELDS = ("token", "email_notifications", "last_access", "last_page")


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def _require_update_rights(acl: Acl, store: RecordStore, collection: str, message: str) -> None:
    """Raise Forbidden unless the current user belongs to a group and may update ``collection``."""
    user = store.find(SystemCollections.USERS, acl.get_user_id())
    group = store.find(SystemCollections.GROUPS, user.get("group")) if user else None
    if not group or not acl.can_update(collection):
        logger.info(
            "Update rejected by ACL",
            collection=collection,
            user_id=acl.get_user_id(),
        )
        raise Forbidden(message)


class FileHooks:
    """Files collection hooks.

    Selected rows get ``url`` and ``thumbnail_url``. Saving files or
    thumbnails, and inserting, updating or deleting file rows, needs update
    rights on the files collection.
    """

    def __init__(self, acl: Acl, store: RecordStore, settings: Settings) -> None:
        self.acl = acl
        self.store = store
        self.settings = settings

    def register(self, emitter: Emitter) -> list[str]:
        files = SystemCollections.FILES
        return [
            emitter.add_filter(before(RecordEvent.SELECT, files), self.ensure_filename_column),
            emitter.add_filter(event_name(RecordEvent.SELECT, files), self.add_urls),
            emitter.add_action(FileEvent.SAVING, self.authorize_action),
            emitter.add_action(FileEvent.THUMBNAIL_SAVING, self.authorize_action),
            emitter.add_filter(before(RecordEvent.INSERT, files), self.authorize),
            emitter.add_filter(before(RecordEvent.UPDATE, files), self.authorize),
            emitter.add_filter(before(RecordEvent.DELETE, files), self.authorize),
        ]

    def ensure_filename_column(self, payload: Payload) -> Payload:
        columns = payload.get("columns")
        if columns and "filename" not in columns:
            payload.set("columns", list(columns) + ["filename"])
        return payload

    def add_urls(self, payload: Payload) -> Payload:
        return payload.replace([self.with_urls(row) for row in payload.data or []])

    def with_urls(self, row: dict[str, Any]) -> dict[str, Any]:
        row = dict(row)
        filename = row.get("filename") or ""
        row["url"] = f"{self.settings.files_root_url}/{filename}"

        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if not extension or extension in NON_IMAGE_THUMBNAIL_FORMATS:
            extension = self.settings.thumbnail_default_format
        row["thumbnail_url"] = f"{self.settings.files_thumbnail_url}/{row.get('id')}.{extension}"
        return row

    def authorize(self, payload: Payload) -> Payload:
        self.authorize_action()
        return payload

    def authorize_action(self, *args: Any) -> None:
        _require_update_rights(
            self.acl,
            self.store,
            SystemCollections.FILES,
            "you are not allowed to upload, edit or delete files",
        )


class MessageHooks:
    """Replace the attachment id list of each message with the file rows.

    All attachments of the selected messages are fetched in one lookup.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(
                event_name(RecordEvent.SELECT, SystemCollections.MESSAGES), self.hydrate_attachments
            ),
        ]

    def hydrate_attachments(self, payload: Payload) -> Payload:
        rows = [dict(row) for row in payload.data or []]

        attachment_ids: dict[int, list[str]] = {}
        for index, row in enumerate(rows):
            if "attachment" not in row:
                continue
            raw = "" if row["attachment"] is None else str(row["attachment"])
            attachment_ids[index] = [item.strip() for item in raw.split(",") if item.strip()]

        wanted = sorted({file_id for ids in attachment_ids.values() for file_id in ids})
        files: dict[str, dict[str, Any]] = {}
        if wanted:
            for entry in self.store.find_many(SystemCollections.FILES, wanted):
                files[str(entry["id"])] = entry

        for index, ids in attachment_ids.items():
            rows[index]["attachment"] = {
                "data": [files[file_id] for file_id in ids if file_id in files]
            }

        return payload.replace(rows)


class UserHooks:
    """Users collection hooks.

    - ``password`` is never returned; ``token``, ``email_notifications``,
      ``last_access`` and ``last_page`` only to the user themselves and to
      administrators.
    - Users cannot be put in the public group.
    - A user updating their own row needs a group and update rights on
      the users collection.
    """

    def __init__(self, acl: Acl, store: RecordStore, settings: Settings) -> None:
        self.acl = acl
        self.store = store
        self.settings = settings

    def register(self, emitter: Emitter) -> list[str]:
        users = SystemCollections.USERS
        return [
            emitter.add_filter(event_name(RecordEvent.SELECT, users), self.redact),
            emitter.add_filter(before(RecordEvent.INSERT, users), self.prevent_public_group),
            emitter.add_filter(before(RecordEvent.UPDATE, users), self.prevent_public_group),
            emitter.add_filter(before(RecordEvent.UPDATE, users), self.authorize_self_update),
        ]

    def is_admin(self) -> bool:
        return _same_id(self.acl.get_group_id(), self.settings.admin_group_id)

    def redact(self, payload: Payload) -> Payload:
        user_id = self.acl.get_user_id()
        admin = self.is_admin()
        rows = []

        for row in payload.data or []:
            omit = {"password"}
            if not admin and not _same_id(user_id, row.get("id")):
                omit.update(PRIVATE_USER_FIELDS)
            rows.append({key: value for key, value in row.items() if key not in omit})

        return payload.replace(rows)

    def prevent_public_group(self, payload: Payload) -> Payload:
        if not payload.has("group"):
            return payload

        group_id = payload["group"]
        if isinstance(group_id, dict):
            group_id = group_id.get("id")
        if not group_id:
            return payload

        group = self.store.find(SystemCollections.GROUPS, group_id)
        if group and str(group.get("name", "")).lower() == self.settings.public_group_name.lower():
            logger.info("Public group assignment rejected", group_id=group_id)
            raise Forbidden("Users cannot be added into the public group")

        return payload

    def authorize_self_update(self, payload: Payload) -> Payload:
        if not _same_id(self.acl.get_user_id(), payload.get("id")):
            return payload

        _require_update_rights(
            self.acl,
            self.store,
            SystemCollections.USERS,
            "you are not allowed to update your user information",
        )
        return payload


class GroupHooks:
    """Give every new group read and update access to the users collection."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_action(
                event_name(RecordEvent.INSERT, SystemCollections.GROUPS), self.add_default_permissions
            ),
        ]

    def add_default_permissions(self, collection_name: str, record: dict[str, Any]) -> None:
        permission_id = self.store.insert(
            SystemCollections.PERMISSIONS,
            {
                "group": record["id"],
                "collection": SystemCollections.USERS,
                "create": 0,
                "read": 1,
                "update": 1,
                "delete": 0,
                "read_field_blacklist": "token",
                "write_field_blacklist": "group,token",
            },
        )
        logger.info(
            "Default group permissions created",
            group_id=record["id"],
            permission_id=permission_id,
        )


class TranslationHooks:
    """Key the rows of a translation relation by their language code.

    Field options:
        languages_table: Collection holding the languages (required).
        languages_code_column: Language column used as key (default ``id``).
        left_column_name: Column of the translation rows pointing to a language.
    """

    def __init__(self, schema_manager: SchemaManager) -> None:
        self.schema_manager = schema_manager

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(
                AppEvent.LOAD_RELATIONAL_ONE_TO_MANY, self.key_by_language, Priority.HIGH
            ),
        ]

    def key_by_language(self, payload: Payload) -> Payload:
        column: Optional[Field] = payload.attribute("column")
        if column is None or column.interface.kind is not InterfaceKind.TRANSLATION:
            return payload

        code_column = column.get_options("languages_code_column", "id")
        languages_table = column.get_options("languages_table")
        language_column = column.get_options("left_column_name")

        if not languages_table:
            raise MissingRelationTarget(language_column or column.name)

        languages = self.schema_manager.get_collection(languages_table)
        primary_key = languages.primary_key_name or "id"

        keyed: dict[Any, dict[str, Any]] = {}
        for row in payload.data or []:
            row = dict(row)
            index = row.get(language_column)
            if isinstance(index, dict):
                language = index
                index = language.get(code_column)
                row[language_column] = language.get(primary_key)
            keyed[index] = row

        return payload.replace(keyed)


class ResponseHooks:
    """Mark responses given to anonymous callers and log application errors."""

    def __init__(self, acl: Acl) -> None:
        self.acl = acl

    def register(self, emitter: Emitter) -> list[str]:
        return [
            emitter.add_filter(AppEvent.RESPONSE, self.mark_public),
            emitter.add_action(AppEvent.ERROR, self.log_error),
        ]

    def mark_public(self, payload: Payload) -> Payload:
        if self.acl.is_public() or not self.acl.get_user_id():
            payload.set("public", True)
        return payload

    def log_error(self, error: BaseException) -> None:
        logger.error(
            "Application error",
            error=str(error),
            error_type=type(error).__name__,
        )
