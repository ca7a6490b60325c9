"""Authentication collaborators: password hashing and the ACL contract."""

from schemaflow.infrastructure.auth.acl import Acl, StaticAcl
from schemaflow.infrastructure.auth.password_hasher import (
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Acl",
    "StaticAcl",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
