"""Product payload validation.

Pydantic models describe the payload shape; pydantic's error list is reduced
to the first violation and rewritten into the message shown to the caller.
"""

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.catalog.models import compute_effective_price
from app.domain.exceptions import ValidationError

Gender = Literal["men", "women", "boy", "girl"]


class BrandOption(BaseModel):
    """A selected brand, as sent by the brand picker."""

    value: int
    label: str


class OccasionOption(BaseModel):
    """A selected occasion token."""

    model_config = ConfigDict(str_strip_whitespace=True, str_to_lower=True)

    value: str = Field(min_length=1, pattern=r"^[^,]+$")
    label: str


class CategoryOption(BaseModel):
    """A selected category."""

    value: int
    label: str


class ProductPayload(BaseModel):
    """Payload for creating a product."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=1)
    id: int | None = None
    description: str = Field(min_length=1)
    rating: Decimal | None = None
    old_price: Decimal = Field(gt=0)
    discount: Decimal = Field(ge=0, le=100)
    colors: str = Field(min_length=1)
    gender: Gender | None = None
    brands: list[BrandOption] = Field(min_length=1)
    occasion: list[OccasionOption] = Field(min_length=1)
    categories: list[CategoryOption] = Field(min_length=1)
    image_url: str | None = None

    @field_validator("rating", "gender", "image_url", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat blank optional fields as absent."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("gender", mode="before")
    @classmethod
    def lower_gender(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def effective_price(self) -> Decimal:
        """Price after discount, rounded to cents."""
        return compute_effective_price(self.old_price, self.discount)

    @property
    def brand_ids(self) -> list[int]:
        return [b.value for b in self.brands]

    @property
    def occasion_tokens(self) -> list[str]:
        return [o.value for o in self.occasion]

    @property
    def category_ids(self) -> list[int]:
        return list(dict.fromkeys(c.value for c in self.categories))


class EditProductPayload(ProductPayload):
    """Payload for editing a product; the id is required."""

    id: int


# Messages per field, keyed by violation kind.
FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "name": {
        "missing": "Product name is required",
        "empty": "Product name cannot be empty",
        "type": "Product name must be a string",
    },
    "id": {
        "missing": "Id is required",
        "type": "Id must be a number",
    },
    "description": {
        "missing": "Product description is required",
        "empty": "Description cannot be empty",
        "type": "Description must be a string",
    },
    "rating": {
        "type": "Rating must be a number",
    },
    "old_price": {
        "missing": "Old price is required",
        "type": "Old price must be a number",
        "range": "Old price must be greater than 0",
    },
    "discount": {
        "missing": "Discount is required",
        "type": "Discount must be a number",
        "range": "Discount must be between 0 and 100",
    },
    "colors": {
        "missing": "Colors are required",
        "empty": "Colors cannot be empty",
        "type": "Colors must be a string",
    },
    "gender": {
        "type": "Gender must be one of men, women, boy, or girl",
    },
    "brands": {
        "missing": "At least one brand must be selected",
        "empty": "Select at least one brand",
        "type": "Brands must be an array of brand objects",
    },
    "occasion": {
        "missing": "At least one occasion must be selected",
        "empty": "Select at least one occasion",
        "type": "Occasions must be an array of occasion objects",
        "item": "Occasion values must be non-empty and cannot contain commas",
    },
    "categories": {
        "missing": "At least one category must be selected",
        "empty": "Select at least one category",
        "type": "Categories must be an array of category objects",
    },
    "image_url": {
        "type": "Image URL must be a string",
    },
}

_RANGE_ERRORS = {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}
_EMPTY_ERRORS = {"string_too_short", "too_short"}


def _violation_kind(error: dict[str, Any]) -> str:
    loc = error.get("loc", ())
    error_type = error.get("type", "")
    if len(loc) > 1:
        return "item"
    if error_type == "missing":
        return "missing"
    if error_type in _EMPTY_ERRORS:
        return "empty"
    if error_type in _RANGE_ERRORS:
        return "range"
    return "type"


def first_violation(exc: PydanticValidationError) -> ValidationError:
    """Reduce a pydantic error to the first violation.

    Args:
        exc: Pydantic validation error.

    Returns:
        Catalog ValidationError carrying a human-readable message.
    """
    error = exc.errors()[0]
    loc = error.get("loc", ())
    field_name = str(loc[0]) if loc else None
    messages = FIELD_MESSAGES.get(field_name or "", {})
    kind = _violation_kind(error)
    message = messages.get(kind) or messages.get("type") or error.get("msg", "Invalid payload")
    return ValidationError(message, field=field_name)


def validate_payload(
    data: Any,
    model: type[ProductPayload] = ProductPayload,
) -> ProductPayload:
    """Validate a raw product payload.

    Args:
        data: Raw payload (mapping).
        model: Payload model to validate against.

    Returns:
        Validated payload.

    Raises:
        ValidationError: On the first contract violation.
    """
    if not isinstance(data, dict):
        raise ValidationError("Payload must be an object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise first_violation(e) from e
