"""Exceptions raised by the schema engine and the record pipeline.

None of these are retried or swallowed inside SchemaFlow; they surface
to the caller unchanged.
"""


class SchemaFlowError(Exception):
    """Base class for all SchemaFlow errors."""

    pass


class CollectionNotFound(SchemaFlowError):
    """Raised when the schema source has no collection with the given name."""

    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Collection not found: {collection}")


class InvalidSchemaDescription(SchemaFlowError):
    """Raised when one or more field descriptions are missing required attributes.

    Attributes:
        violations: One ``(field, attribute, message)`` tuple per problem, for
            every offending description (not only the first one).
    """

    def __init__(self, violations: list[tuple[str, str, str]]) -> None:
        self.violations = violations
        messages = [f"{field}.{attribute}: {message}" for field, attribute, message in violations]
        super().__init__("Invalid field description: " + "; ".join(messages))

    @property
    def fields(self) -> list[str]:
        """Names (or positions) of the offending field descriptions, in order."""
        seen: list[str] = []
        for field, _, _ in self.violations:
            if field not in seen:
                seen.append(field)
        return seen


class Forbidden(SchemaFlowError):
    """Raised by a lifecycle handler when an authorization gate rejects an operation."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        self.message = message
        super().__init__(message)


class AdapterExecutionFailure(SchemaFlowError):
    """Raised when the schema source or record store fails to execute a statement.

    The original driver exception is kept as ``__cause__``.
    """

    def __init__(self, operation: str, collection: str | None, message: str) -> None:
        self.operation = operation
        self.collection = collection
        prefix = f"{operation} failed"
        if collection:
            prefix += f" on {collection}"
        super().__init__(f"{prefix}: {message}")


class MissingRelationTarget(SchemaFlowError):
    """Raised when a translation field does not name its languages table."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Translations language table not defined for {field}")
