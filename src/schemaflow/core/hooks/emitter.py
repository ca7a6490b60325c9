"""Emitter - Central filter/action registration and dispatch.

Filters transform a Payload and return it; actions receive positional
arguments and return nothing. Both are keyed by event name and run in
priority order (HIGH before NORMAL before LOW), in registration order
within one priority.

Dispatch is synchronous. A listener that raises aborts the remaining
listeners of that event and the exception reaches the caller unchanged.

The application composition root builds one Emitter, registers the
built-in hooks on it once at startup and passes it to the services.
"""

import itertools
import uuid
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Optional

from schemaflow.core.logging import get_logger
from schemaflow.domain.entities.payload import Payload

logger = get_logger(__name__)


class Priority(IntEnum):
    """Listener priority. Higher values run first."""

    HIGH = 2
    NORMAL = 0
    LOW = -2


class ListenerKind(str, Enum):
    FILTER = "filter"
    ACTION = "action"


@dataclass
class Listener:
    """Internal representation of a registered listener.

    Attributes:
        id: Unique identifier for this registration.
        event: The event this listener is registered for.
        kind: Filter or action.
        callback: The callable to run.
        priority: Execution priority (higher = earlier).
        registration_order: Order in which this listener was registered.
    """

    id: str
    event: str
    kind: ListenerKind
    callback: Callable[..., Any]
    priority: int = Priority.NORMAL
    registration_order: int = 0


class Emitter:
    """Ordered filter/action registry and dispatcher.

    Example:
        emitter = Emitter()

        def add_slug(payload):
            payload["slug"] = slugify(payload["title"])
            return payload

        emitter.add_filter("collection.insert:before", add_slug, Priority.HIGH)
        emitter.add_action("collection.insert:after", lambda name, record: print(name))

        payload = emitter.apply("collection.insert:before", Payload({"title": "Hi"}))
        emitter.execute("collection.insert:after", "articles", payload.data)
    """

    def __init__(self) -> None:
        self._listeners: dict[ListenerKind, dict[str, list[Listener]]] = {
            ListenerKind.FILTER: {},
            ListenerKind.ACTION: {},
        }
        self._by_id: dict[str, Listener] = {}
        self._counter = itertools.count(1)

    def add_filter(
        self,
        event: str,
        callback: Callable[[Payload], Optional[Payload]],
        priority: int = Priority.NORMAL,
    ) -> str:
        """Register a filter.

        The callback receives the Payload and returns it (or a replacement).
        Returning None means the payload was mutated in place.

        Returns:
            Listener id for ``remove_listener``.
        """
        return self._add(ListenerKind.FILTER, event, callback, priority)

    def add_action(
        self,
        event: str,
        callback: Callable[..., Any],
        priority: int = Priority.NORMAL,
    ) -> str:
        """Register an action. Its return value is ignored."""
        return self._add(ListenerKind.ACTION, event, callback, priority)

    def _add(self, kind: ListenerKind, event: str, callback: Callable[..., Any], priority: int) -> str:
        if not callable(callback):
            raise TypeError(f"Listener for '{event}' is not callable")

        listener = Listener(
            id=f"listener_{uuid.uuid4().hex[:12]}",
            event=event,
            kind=kind,
            callback=callback,
            priority=int(priority),
            registration_order=next(self._counter),
        )
        self._listeners[kind].setdefault(event, []).append(listener)
        self._by_id[listener.id] = listener

        logger.debug(
            "Listener registered",
            listener_id=listener.id,
            hook_event=event,
            kind=kind.value,
            priority=listener.priority,
        )
        return listener.id

    def remove_listener(self, listener_id: str) -> bool:
        """Remove a listener.

        Returns:
            True if it was removed, False if no listener has this id.
        """
        listener = self._by_id.pop(listener_id, None)
        if listener is None:
            logger.warning("Listener not found for removal", listener_id=listener_id)
            return False

        bucket = self._listeners[listener.kind]
        remaining = [item for item in bucket.get(listener.event, []) if item.id != listener_id]
        if remaining:
            bucket[listener.event] = remaining
        else:
            bucket.pop(listener.event, None)

        logger.debug("Listener removed", listener_id=listener_id, hook_event=listener.event)
        return True

    def get_listeners(self, event: str, kind: Optional[ListenerKind] = None) -> list[Listener]:
        """Listeners of an event in execution order."""
        kinds = [kind] if kind else list(ListenerKind)
        listeners: list[Listener] = []
        for item in kinds:
            listeners.extend(self._listeners[item].get(event, []))
        return sorted(listeners, key=lambda h: (-h.priority, h.registration_order))

    def has_listeners(self, event: str, kind: Optional[ListenerKind] = None) -> bool:
        return bool(self.get_listeners(event, kind))

    def apply(self, event: str, payload: Any = None, **attributes: Any) -> Payload:
        """Run the filters of an event over a payload.

        A non-Payload value is wrapped in a Payload carrying ``attributes``.

        Returns:
            The payload returned by the last filter.

        Raises:
            TypeError: If a filter returns something other than a Payload or None.
        """
        if not isinstance(payload, Payload):
            payload = Payload(payload, **attributes)

        listeners = self.get_listeners(event, ListenerKind.FILTER)
        if not listeners:
            return payload

        logger.debug("Applying filters", hook_event=event, listener_count=len(listeners))

        for listener in listeners:
            result = listener.callback(payload)
            if result is None:
                continue
            if not isinstance(result, Payload):
                raise TypeError(
                    f"Filter {listener.id} for '{event}' returned "
                    f"{type(result).__name__}, expected Payload"
                )
            payload = result

        return payload

    def execute(self, event: str, *args: Any) -> None:
        """Run the actions of an event with the given arguments."""
        listeners = self.get_listeners(event, ListenerKind.ACTION)
        if not listeners:
            return

        logger.debug("Executing actions", hook_event=event, listener_count=len(listeners))

        for listener in listeners:
            listener.callback(*args)

    def clear(self) -> int:
        """Remove every listener.

        Returns:
            Number of listeners removed.
        """
        count = len(self._by_id)
        for bucket in self._listeners.values():
            bucket.clear()
        self._by_id.clear()
        logger.debug("Listeners cleared", count=count)
        return count
