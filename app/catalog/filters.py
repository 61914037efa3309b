"""Filter compilation for product listing queries.

Turns a structured filter request into parameterized SQLAlchemy conditions
over the products table. Conditions from different criteria are AND-ed;
values within one criterion are OR-ed.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import ColumnElement, func, select

from app.catalog.membership import BRAND_CODEC, OCCASION_CODEC
from app.catalog.models import Product, ProductCategory
from app.catalog.pagination import PageRequest
from app.domain.exceptions import InvalidFilterError, InvalidPageError
from app.infrastructure.config import settings

NO_GENDER = "none"

SORT_DIRECTIONS = ("asc", "desc")


SORTABLE_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "rating": Product.rating,
}


def to_decimal(parameter: str, value: Any) -> Decimal | None:
    """Parse a numeric filter value.

    Args:
        parameter: Parameter name, for error reporting.
        value: Raw value (number, numeric string, None or "").

    Returns:
        Decimal value, or None when absent.

    Raises:
        InvalidFilterError: If the value is not a finite number.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidFilterError(parameter, value, "must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidFilterError(parameter, value, "must be a number") from None
    if not number.is_finite():
        raise InvalidFilterError(parameter, value, "must be a finite number")
    return number


def split_csv(raw: str | None) -> list[str]:
    """Split a comma-separated value, trimming and dropping empty tokens."""
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def parse_id_list(parameter: str, raw: str | None) -> list[int]:
    """Parse a comma-separated list of integer ids.

    Raises:
        InvalidFilterError: If any token is not an integer.
    """
    ids = []
    for token in split_csv(raw):
        try:
            ids.append(int(token))
        except ValueError:
            raise InvalidFilterError(parameter, token, "ids must be integers") from None
    return ids


def parse_range(parameter: str, raw: str | None) -> tuple[Decimal | None, Decimal | None]:
    """Parse a "min-max" range; a bare number is a lower bound."""
    if not raw or not raw.strip():
        return None, None
    low, sep, high = raw.strip().partition("-")
    minimum = to_decimal(parameter, low)
    maximum = to_decimal(parameter, high) if sep else None
    return minimum, maximum


@dataclass
class SortSpec:
    """Validated sort key and direction."""

    key: str
    direction: str = "asc"

    def order_by(self) -> list[Any]:
        """ORDER BY clauses for this sort."""
        column = SORTABLE_COLUMNS[self.key]
        return [column.desc() if self.direction == "desc" else column.asc()]


def parse_sort(sort_by: str | None, sort_order: str | None = None) -> SortSpec | None:
    """Validate a sort request against the allow-list.

    Accepts either separate key and order, or the combined "price-desc" form.

    Args:
        sort_by: Sort key (name, price, rating), optionally "key-direction".
        sort_order: Sort direction (asc, desc).

    Returns:
        SortSpec, or None when no sort was requested.

    Raises:
        InvalidFilterError: If the key or direction is not allowed.
    """
    if not sort_by or not sort_by.strip():
        return None

    key, sep, direction = sort_by.strip().lower().partition("-")
    if not sep:
        direction = (sort_order or "asc").strip().lower()

    if key not in SORTABLE_COLUMNS:
        raise InvalidFilterError(
            "sort_by",
            sort_by,
            f"must be one of {', '.join(SORTABLE_COLUMNS)}",
        )
    if direction not in SORT_DIRECTIONS:
        raise InvalidFilterError("sort_order", direction, "must be asc or desc")

    return SortSpec(key=key, direction=direction)


@dataclass
class ProductFilter:
    """Filter parameters for product listing.

    Attributes:
        brand_ids: Products carrying any of these brand ids.
        category_ids: Products linked to any of these categories.
        min_price: Inclusive lower bound on effective price.
        max_price: Inclusive upper bound on effective price.
        gender: Exact gender tag, case-insensitive; "none" means unset.
        occasions: Raw comma-separated occasion tokens.
        min_discount: Inclusive lower bound on discount percentage.
        max_discount: Inclusive upper bound on discount percentage.
    """

    brand_ids: list[int] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    min_price: Any = None
    max_price: Any = None
    gender: str | None = None
    occasions: str | None = None
    min_discount: Any = None
    max_discount: Any = None

    @property
    def occasion_tokens(self) -> list[str]:
        """Occasion tokens after splitting, trimming and case folding."""
        return [token.lower() for token in split_csv(self.occasions)]

    @property
    def gender_tag(self) -> str | None:
        """Lower-cased gender, or None if absent or the sentinel."""
        if not self.gender or not self.gender.strip():
            return None
        gender = self.gender.strip().lower()
        if gender == NO_GENDER:
            return None
        return gender


def compile_filter(product_filter: ProductFilter) -> list[ColumnElement[bool]]:
    """Compile a filter into AND-ed conditions over the products table.

    Args:
        product_filter: Filter to compile.

    Returns:
        Conditions; empty when nothing constrains the listing.

    Raises:
        InvalidFilterError: If a numeric bound is not a number.
    """
    min_price = to_decimal("min_price", product_filter.min_price)
    max_price = to_decimal("max_price", product_filter.max_price)
    min_discount = to_decimal("min_discount", product_filter.min_discount)
    max_discount = to_decimal("max_discount", product_filter.max_discount)

    conditions: list[ColumnElement[bool]] = []

    brand_clause = BRAND_CODEC.membership_predicate(
        Product.brands, product_filter.brand_ids
    )
    if brand_clause is not None:
        conditions.append(brand_clause)

    if product_filter.category_ids:
        linked = select(ProductCategory.product_id).where(
            ProductCategory.category_id.in_(product_filter.category_ids)
        )
        conditions.append(Product.id.in_(linked))

    if min_price is not None:
        conditions.append(Product.price >= min_price)

    if max_price is not None:
        conditions.append(Product.price <= max_price)

    gender = product_filter.gender_tag
    if gender is not None:
        conditions.append(func.lower(Product.gender) == gender)

    occasion_clause = OCCASION_CODEC.membership_predicate(
        Product.occasion, product_filter.occasion_tokens
    )
    if occasion_clause is not None:
        conditions.append(occasion_clause)

    if min_discount is not None:
        conditions.append(Product.discount >= min_discount)

    if max_discount is not None:
        conditions.append(Product.discount <= max_discount)

    return conditions


def _parse_int(parameter: str, raw: Any, default: int) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InvalidPageError(parameter, raw, "must be an integer") from None


@dataclass
class ProductQuery:
    """A full listing request: filter, sort and page."""

    filter: ProductFilter = field(default_factory=ProductFilter)
    page: PageRequest = field(default_factory=PageRequest)
    sort_by: str | None = None
    sort_order: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ProductQuery":
        """Build a query from listing query-string parameters.

        Recognized keys: page, pageSize, sortBy, sortOrder, brandId,
        categoryId, priceRangeFrom, priceRangeTo, gender, occasions,
        discount ("min-max"), minDiscount.

        Raises:
            InvalidFilterError: For non-numeric filter values.
            InvalidPageError: For non-integer page values.
        """
        min_discount, max_discount = parse_range("discount", params.get("discount"))
        if params.get("minDiscount") not in (None, ""):
            min_discount = to_decimal("minDiscount", params.get("minDiscount"))

        product_filter = ProductFilter(
            brand_ids=parse_id_list("brandId", params.get("brandId")),
            category_ids=parse_id_list("categoryId", params.get("categoryId")),
            min_price=to_decimal("priceRangeFrom", params.get("priceRangeFrom")),
            max_price=to_decimal("priceRangeTo", params.get("priceRangeTo")),
            gender=params.get("gender") or None,
            occasions=params.get("occasions") or None,
            min_discount=min_discount,
            max_discount=max_discount,
        )
        page = PageRequest(
            page=_parse_int("page", params.get("page"), 1),
            page_size=_parse_int(
                "page_size", params.get("pageSize"), settings.default_page_size
            ),
        )
        return cls(
            filter=product_filter,
            page=page,
            sort_by=params.get("sortBy") or None,
            sort_order=params.get("sortOrder") or None,
        )
