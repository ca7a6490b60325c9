"""Infrastructure layer - External dependencies and implementations.

This layer contains:
- Schema sources and the record store (SQLAlchemy)
- DDL compilation for the supported dialects
- Password hashing and the ACL contract
- The tagged cache and the built-in lifecycle hooks
"""

from schemaflow.infrastructure.persistence.database import Base, create_db_engine

__all__ = [
    "Base",
    "create_db_engine",
]
