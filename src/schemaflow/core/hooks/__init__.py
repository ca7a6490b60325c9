"""Hook system core module.

The Emitter is the composition backbone: every lifecycle handler, cache
invalidator and extension hooks into the record pipeline through it.

Example usage:
    from schemaflow.core.hooks import Emitter, Priority, RecordEvent, before

    emitter = Emitter()

    def stamp(payload):
        payload["reviewed"] = True
        return payload

    emitter.add_filter(before(RecordEvent.INSERT, "articles"), stamp, Priority.HIGH)
"""

from schemaflow.core.hooks.emitter import Emitter, Listener, ListenerKind, Priority
from schemaflow.core.hooks.hook_events import (
    AFTER,
    BEFORE,
    AppEvent,
    FileEvent,
    RecordEvent,
    SchemaEvent,
    after,
    after_events,
    before,
    before_events,
    event_name,
    is_after_event,
    is_before_event,
    split_phase,
)

__all__ = [
    # Emitter
    "Emitter",
    "Listener",
    "ListenerKind",
    "Priority",
    # Events
    "AFTER",
    "BEFORE",
    "AppEvent",
    "FileEvent",
    "RecordEvent",
    "SchemaEvent",
    "after",
    "after_events",
    "before",
    "before_events",
    "event_name",
    "is_after_event",
    "is_before_event",
    "split_phase",
]
