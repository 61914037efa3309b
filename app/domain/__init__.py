"""Domain layer module.

Contains the catalog error taxonomy shared by all layers.
"""

from app.domain.exceptions import (
    CatalogError,
    InvalidFilterError,
    InvalidPageError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "CatalogError",
    "InvalidFilterError",
    "InvalidPageError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
