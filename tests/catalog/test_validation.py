"""Tests for product payload validation."""

from decimal import Decimal
from typing import Any

import pytest

from app.catalog.models import compute_effective_price
from app.catalog.validation import EditProductPayload, validate_payload
from app.domain.exceptions import ValidationError


def _error(payload: Any, model=None) -> ValidationError:
    with pytest.raises(ValidationError) as exc_info:
        if model is None:
            validate_payload(payload)
        else:
            validate_payload(payload, model)
    return exc_info.value


class TestEffectivePrice:
    """Tests for the derived price."""

    def test_simple_discount(self) -> None:
        assert compute_effective_price(100, 20) == Decimal("80.00")

    def test_rounds_half_up_to_cents(self) -> None:
        """19.99 at 15% off is 16.9915, stored as 16.99."""
        assert compute_effective_price("19.99", 15) == Decimal("16.99")
        assert compute_effective_price("10.05", 50) == Decimal("5.03")

    def test_no_float_drift(self) -> None:
        assert compute_effective_price(0.1, 0) == Decimal("0.10")

    def test_full_discount(self) -> None:
        assert compute_effective_price(100, 100) == Decimal("0.00")


class TestValidatePayload:
    """Tests for payload validation."""

    def test_valid_payload(self, make_payload) -> None:
        data = validate_payload(make_payload(brand_ids=[5, 15], occasions=["party", "wedding"]))
        assert data.effective_price == Decimal("80.00")
        assert data.brand_ids == [5, 15]
        assert data.occasion_tokens == ["party", "wedding"]
        assert data.category_ids == [1]

    def test_occasion_tokens_lower_cased(self, make_payload) -> None:
        data = validate_payload(make_payload(occasions=[" Party", "WEDDING"]))
        assert data.occasion_tokens == ["party", "wedding"]

    def test_category_ids_deduplicated(self, make_payload) -> None:
        data = validate_payload(make_payload(category_ids=[2, 1, 2]))
        assert data.category_ids == [2, 1]

    def test_missing_name(self, make_payload) -> None:
        payload = make_payload()
        del payload["name"]
        assert _error(payload).message == "Product name is required"

    def test_blank_name(self, make_payload) -> None:
        assert _error(make_payload(name="   ")).message == "Product name cannot be empty"

    def test_non_numeric_old_price(self, make_payload) -> None:
        error = _error(make_payload(old_price="abc"))
        assert error.message == "Old price must be a number"
        assert error.details["field"] == "old_price"

    def test_zero_old_price(self, make_payload) -> None:
        assert _error(make_payload(old_price=0)).message == "Old price must be greater than 0"

    @pytest.mark.parametrize("discount", [-1, 101])
    def test_discount_out_of_range(self, make_payload, discount: int) -> None:
        assert _error(make_payload(discount=discount)).message == (
            "Discount must be between 0 and 100"
        )

    def test_empty_brands(self, make_payload) -> None:
        assert _error(make_payload(brands=[])).message == "Select at least one brand"

    def test_brands_wrong_type(self, make_payload) -> None:
        error = _error(make_payload(brands="5"))
        assert error.message == "Brands must be an array of brand objects"

    def test_empty_categories(self, make_payload) -> None:
        assert _error(make_payload(categories=[])).message == "Select at least one category"

    def test_occasion_with_comma(self, make_payload) -> None:
        error = _error(make_payload(occasion=[{"value": "black,tie", "label": "Black tie"}]))
        assert error.message == "Occasion values must be non-empty and cannot contain commas"

    def test_unknown_gender(self, make_payload) -> None:
        error = _error(make_payload(gender="other"))
        assert error.message == "Gender must be one of men, women, boy, or girl"

    def test_gender_case_folded(self, make_payload) -> None:
        assert validate_payload(make_payload(gender="Women")).gender == "women"

    def test_optional_fields_may_be_blank(self, make_payload) -> None:
        data = validate_payload(make_payload(rating="", gender="", image_url=""))
        assert data.rating is None
        assert data.gender is None
        assert data.image_url is None

    def test_only_first_violation_reported(self, make_payload) -> None:
        """Several problems still produce a single message."""
        payload = make_payload(old_price="abc", brands=[])
        del payload["name"]
        error = _error(payload)
        assert error.message == "Product name is required"

    def test_non_object_payload(self) -> None:
        assert _error(["not", "an", "object"]).message == "Payload must be an object"

    def test_edit_requires_id(self, make_payload) -> None:
        assert _error(make_payload(), EditProductPayload).message == "Id is required"

    def test_edit_id_must_be_number(self, make_payload) -> None:
        error = _error(make_payload(id="seven"), EditProductPayload)
        assert error.message == "Id must be a number"
