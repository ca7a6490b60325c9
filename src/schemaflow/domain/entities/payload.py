"""Payload threaded through an event dispatch.

A Payload carries the record data (a single record or a list of rows)
plus out-of-band attributes such as ``collection_name`` or ``selectState``
that travel with the event without being part of the record itself.
Filters may mutate keys in place or replace the whole data content.
"""

from collections.abc import MutableMapping
from typing import Any, Iterator, Optional


class Payload(MutableMapping):
    """Mutable data bag plus attributes.

    Mapping access (``payload["title"]``) works on the data when it is a
    single record.

    Example:
        payload = Payload({"title": "Hello"}, collection_name="articles")
        payload["slug"] = "hello"
        payload.attribute("collection_name")  # "articles"
    """

    def __init__(self, data: Any = None, **attributes: Any) -> None:
        self._data: Any = {} if data is None else data
        self._attributes: dict[str, Any] = dict(attributes)

    @property
    def data(self) -> Any:
        return self._data

    def get_data(self) -> Any:
        return self._data

    def replace(self, data: Any) -> "Payload":
        """Replace the whole data content."""
        self._data = data
        return self

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self._attributes)

    def attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    @property
    def collection_name(self) -> Optional[str]:
        return self._attributes.get("collection_name")

    def _record(self) -> dict[str, Any]:
        if not isinstance(self._data, MutableMapping):
            raise TypeError("Payload data is not a single record")
        return self._data

    def has(self, key: str) -> bool:
        return isinstance(self._data, MutableMapping) and key in self._data

    def set(self, key: str, value: Any) -> None:
        self._record()[key] = value

    def remove(self, key: str) -> None:
        if self.has(key):
            del self._data[key]

    def __contains__(self, key: object) -> bool:
        return isinstance(self._data, MutableMapping) and key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._record()[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._record()[key] = value

    def __delitem__(self, key: str) -> None:
        del self._record()[key]

    def __iter__(self) -> Iterator[str]:
        if isinstance(self._data, MutableMapping):
            return iter(self._data)
        return iter(())

    def __len__(self) -> int:
        if isinstance(self._data, MutableMapping):
            return len(self._data)
        return 0

    def __repr__(self) -> str:
        return f"Payload(data={self._data!r}, attributes={self._attributes!r})"
