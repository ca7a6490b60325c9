"""ACL contract consumed by the lifecycle handlers.

Authentication and permission resolution live outside SchemaFlow; the
handlers only need to know who the caller is and whether they may
update a collection.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Acl(Protocol):
    """Access control view of the current caller."""

    def get_user_id(self) -> Optional[Any]:
        ...

    def get_group_id(self) -> Optional[Any]:
        ...

    def is_public(self) -> bool:
        ...

    def can_update(self, collection: str) -> bool:
        ...


@dataclass
class StaticAcl:
    """Fixed ACL for scripts, the CLI and tests.

    Attributes:
        user_id: Current user id, None for anonymous callers.
        group_id: Current user's group id.
        public: Whether the caller uses the public (unauthenticated) access.
        updatable: Collections the caller may update. None means all.
    """

    user_id: Optional[Any] = None
    group_id: Optional[Any] = None
    public: bool = False
    updatable: Optional[frozenset[str]] = None

    def get_user_id(self) -> Optional[Any]:
        return self.user_id

    def get_group_id(self) -> Optional[Any]:
        return self.group_id

    def is_public(self) -> bool:
        return self.public

    def can_update(self, collection: str) -> bool:
        if self.updatable is None:
            return True
        return collection in self.updatable
