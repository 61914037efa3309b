"""Tests for catalog exceptions."""

import pytest

from app.domain.exceptions import (
    CatalogError,
    InvalidFilterError,
    InvalidPageError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


class TestErrorCodes:
    """Each error kind carries its own machine-readable code."""

    @pytest.mark.parametrize(
        "exc,code",
        [
            (ValidationError("Product name is required", field="name"), "VALIDATION_ERROR"),
            (InvalidFilterError("max_price", "abc", "must be a number"), "INVALID_FILTER"),
            (InvalidPageError("page", 0), "INVALID_PAGE"),
            (PersistenceError("Could not create the product"), "PERSISTENCE_ERROR"),
            (NotFoundError("Product", 42), "NOT_FOUND"),
        ],
    )
    def test_codes(self, exc: CatalogError, code: str) -> None:
        assert isinstance(exc, CatalogError)
        assert exc.error_code == code


class TestMessages:
    def test_validation_message_is_verbatim(self) -> None:
        exc = ValidationError("Old price must be a number", field="old_price")
        assert str(exc) == "Old price must be a number"
        assert exc.details == {"field": "old_price"}

    def test_validation_without_field(self) -> None:
        assert ValidationError("Payload must be an object").details == {}

    def test_invalid_filter(self) -> None:
        exc = InvalidFilterError("max_price", "abc", "must be a number")
        assert exc.message == "Invalid filter 'max_price': must be a number"
        assert exc.details["value"] == "abc"

    def test_invalid_page(self) -> None:
        exc = InvalidPageError("page_size", 0)
        assert exc.message == "Invalid page_size 0: must be at least 1"

    def test_not_found(self) -> None:
        exc = NotFoundError("Product", 42)
        assert exc.message == "Product not found: 42"
        assert exc.details == {"entity_type": "Product", "entity_id": "42"}

    def test_persistence_details(self) -> None:
        exc = PersistenceError("Could not update the product", details={"operation": "edit"})
        assert exc.details["operation"] == "edit"
