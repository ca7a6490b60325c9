"""Cache tags.

Tags are pure functions of their inputs so that the code writing a cache
entry and the code invalidating it agree without coordination.
"""

from typing import Any


def entity_tag(collection: str, record_id: Any) -> str:
    """Tag of one record.

    Example:
        >>> entity_tag("articles", 42)
        'entity_articles_42'
    """
    return f"entity_{collection}_{record_id}"


def table_tag(collection: str) -> str:
    """Tag of a whole collection."""
    return f"table_{collection}"


def permissions_tag(collection: str, group: Any) -> str:
    """Tag of the permissions a group has on a collection.

    Example:
        >>> permissions_tag("articles", 3)
        'permissions_collection_articles_group_3'
    """
    return f"permissions_collection_{collection}_group_{group}"
