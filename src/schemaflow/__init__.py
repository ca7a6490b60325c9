"""SchemaFlow - metadata-driven collections with a record lifecycle pipeline.

Collection shapes (fields, types, relations, interfaces) are stored as
data, turned into dialect-specific DDL, and every record mutation or read
runs through an ordered chain of filters and actions that also keeps a
tag-addressed cache consistent.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
