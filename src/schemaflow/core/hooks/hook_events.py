"""Hook event names and phase sequences.

Event names are dotted and may carry a collection specialization and a
phase suffix:

    collection.insert                      generic, bare
    collection.insert:before               generic, before phase
    collection.insert.articles:before      specialized for "articles"

Generic and specialized names are distinct registration keys. The record
and collection services fire them in the order given by ``before_events``
and ``after_events``.
"""

from typing import Optional

BEFORE = "before"
AFTER = "after"


class RecordEvent:
    """Record lifecycle events, specialized per collection."""

    INSERT = "collection.insert"
    UPDATE = "collection.update"
    DELETE = "collection.delete"
    SELECT = "collection.select"


class SchemaEvent:
    """Collection-level (table) events."""

    CREATE = "table.create"
    UPDATE = "table.update"
    DROP = "table.drop"


class FileEvent:
    SAVING = "files.saving"
    THUMBNAIL_SAVING = "files.thumbnail.saving"


class AppEvent:
    RESPONSE = "response"
    ERROR = "application.error"
    LOAD_RELATIONAL_ONE_TO_MANY = "load.relational.onetomany"


def event_name(event: str, collection: Optional[str] = None, phase: Optional[str] = None) -> str:
    """Build an event name.

    Example:
        >>> event_name(RecordEvent.INSERT, "articles", BEFORE)
        'collection.insert.articles:before'
        >>> event_name(RecordEvent.DELETE, phase=AFTER)
        'collection.delete:after'
    """
    name = f"{event}.{collection}" if collection else event
    return f"{name}:{phase}" if phase else name


def before(event: str, collection: Optional[str] = None) -> str:
    return event_name(event, collection, BEFORE)


def after(event: str, collection: Optional[str] = None) -> str:
    return event_name(event, collection, AFTER)


def before_events(event: str, collection: Optional[str] = None) -> list[str]:
    """Events fired before the store operation: generic, then specialized."""
    names = [before(event)]
    if collection:
        names.append(before(event, collection))
    return names


def after_events(event: str, collection: Optional[str] = None) -> list[str]:
    """Events fired after the store operation.

    Specialized ``:after`` and bare names first, then the generic ones.
    """
    names: list[str] = []
    if collection:
        names += [after(event, collection), event_name(event, collection)]
    names += [after(event), event]
    return names


def split_phase(name: str) -> tuple[str, Optional[str]]:
    """Split ``"collection.insert:before"`` into ``("collection.insert", "before")``."""
    base, _, phase = name.partition(":")
    return base, phase or None


def is_before_event(name: str) -> bool:
    return split_phase(name)[1] == BEFORE


def is_after_event(name: str) -> bool:
    return split_phase(name)[1] == AFTER
