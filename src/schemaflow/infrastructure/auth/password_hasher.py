"""Password hashing using Argon2.

Used by the password lifecycle hooks to hash password-interface fields and
the users collection ``password`` before they are stored.
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using Argon2id.

    Example:
        >>> hashed = hash_password("SecureP@ss123!")
        >>> hashed.startswith("$argon2id$")
        True
    """
    return _hasher.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a hash.

    Returns False for a wrong password and for a value that is not an
    Argon2 hash at all.
    """
    try:
        return _hasher.verify(hashed, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


def needs_rehash(hashed: str) -> bool:
    """Check whether a hash was made with outdated parameters."""
    return _hasher.check_needs_rehash(hashed)
