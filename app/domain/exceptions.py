"""Domain exceptions.

All catalog-level errors. Validation, filter and page errors are detected
before storage is touched; persistence errors are raised at the transaction
boundary; not-found is kept separate from persistence so callers can tell
"does not exist" from "store unavailable".
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors should inherit from this class to allow
    catching them at the application layer.
    """

    error_code = "CATALOG_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CatalogError):
    """Raised when a product payload violates the input contract.

    Carries the first violation only.
    """

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Message shown to the caller verbatim.
            field: Name of the offending field, if known.
        """
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class InvalidFilterError(CatalogError):
    """Raised for unparseable numeric filters or disallowed sort keys."""

    error_code = "INVALID_FILTER"

    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        """Initialize invalid filter error.

        Args:
            parameter: Filter parameter name.
            value: The rejected value.
            reason: Explanation of why the value is invalid.
        """
        super().__init__(
            f"Invalid filter '{parameter}': {reason}",
            details={"parameter": parameter, "value": str(value), "reason": reason},
        )


class InvalidPageError(CatalogError):
    """Raised when a page number or page size is out of range."""

    error_code = "INVALID_PAGE"

    def __init__(self, parameter: str, value: Any, reason: str = "must be at least 1") -> None:
        """Initialize invalid page error.

        Args:
            parameter: "page" or "page_size".
            value: The rejected value.
            reason: Explanation of why the value is invalid.
        """
        super().__init__(
            f"Invalid {parameter} {value!r}: {reason}",
            details={"parameter": parameter, "value": str(value), "reason": reason},
        )


class PersistenceError(CatalogError):
    """Raised when a storage operation fails.

    The transaction is rolled back before this is raised.
    """

    error_code = "PERSISTENCE_ERROR"


class NotFoundError(CatalogError):
    """Raised when a lookup by id yields zero rows."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "Product").
            entity_id: ID that was looked up.
        """
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )
