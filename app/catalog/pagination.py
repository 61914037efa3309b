"""Pagination over the filtered product collection.

Count and page slice are computed from the same conditions and both collapse
duplicate product rows, so ``count`` always equals the number of products
reachable by walking every page.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Product
from app.domain.exceptions import InvalidPageError

T = TypeVar("T")


@dataclass
class PageRequest:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = 10

    def validate(self) -> None:
        """Reject page numbers and sizes below 1.

        Raises:
            InvalidPageError: If either value is out of range.
        """
        if self.page < 1:
            raise InvalidPageError("page", self.page)
        if self.page_size < 1:
            raise InvalidPageError("page_size", self.page_size)

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class Page(Generic[T]):
    """One page of results plus the metadata the listing needs.

    Attributes:
        items: Items on this page.
        count: Total number of distinct matching items.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    count: int
    page: int
    page_size: int

    @property
    def last_page(self) -> int:
        """Number of the last page; 0 when nothing matches."""
        return math.ceil(self.count / self.page_size)

    @property
    def num_of_results_on_cur_page(self) -> int:
        """Number of items on this page."""
        return len(self.items)

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.last_page

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1


def order_by_clauses(sort: Any | None) -> list[Any]:
    """Ordering for a page query, always ending with the id tie-break.

    Args:
        sort: Optional sort spec exposing ``order_by()``.

    Returns:
        ORDER BY clauses.
    """
    clauses = list(sort.order_by()) if sort is not None else []
    clauses.append(Product.id.asc())
    return clauses


async def count_products(
    session: AsyncSession,
    conditions: Sequence[ColumnElement[bool]],
) -> int:
    """Count distinct products matching the conditions."""
    query = select(func.count(distinct(Product.id))).where(*conditions)
    result = await session.execute(query)
    return result.scalar_one()


async def paginate(
    session: AsyncSession,
    conditions: Sequence[ColumnElement[bool]],
    page_request: PageRequest,
    sort: Any | None = None,
) -> Page[Product]:
    """Fetch one page of products and the matching total.

    Args:
        session: Async SQLAlchemy session.
        conditions: Compiled filter conditions (AND-ed).
        page_request: Page number and size.
        sort: Optional sort spec.

    Returns:
        Page of products with metadata.

    Raises:
        InvalidPageError: If the page request is out of range.
    """
    page_request.validate()

    total = await count_products(session, conditions)

    query = (
        select(Product)
        .where(*conditions)
        .distinct()
        .order_by(*order_by_clauses(sort))
        .offset(page_request.offset)
        .limit(page_request.limit)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(query)
    items = list(result.scalars().all())

    return Page(
        items=items,
        count=total,
        page=page_request.page,
        page_size=page_request.page_size,
    )
