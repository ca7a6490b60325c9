"""Domain services for SchemaFlow.

The schema manager lives in ``schemaflow.domain.services.schema_manager``;
it is not re-exported here because the entities import the type catalog
from this package.
"""

from schemaflow.domain.services.data_types import DataTypes, TypeCatalog
from schemaflow.domain.services.slug_generator import SlugGenerator, slugify

__all__ = [
    "DataTypes",
    "SlugGenerator",
    "TypeCatalog",
    "slugify",
]
