"""Application services."""

from schemaflow.application.services.collection_service import CollectionService
from schemaflow.application.services.record_service import RecordService

__all__ = [
    "CollectionService",
    "RecordService",
]
