"""Tests for pagination and sorting."""

from decimal import Decimal

import pytest

from app.catalog.filters import ProductFilter, ProductQuery
from app.catalog.pagination import Page, PageRequest
from app.domain.exceptions import InvalidPageError


class TestPageRequest:
    """Tests for page request arithmetic."""

    def test_offset_and_limit(self) -> None:
        request = PageRequest(page=3, page_size=10)
        assert request.offset == 20
        assert request.limit == 10

    @pytest.mark.parametrize("page,page_size", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_rejects_values_below_one(self, page: int, page_size: int) -> None:
        with pytest.raises(InvalidPageError):
            PageRequest(page=page, page_size=page_size).validate()


class TestPage:
    """Tests for page metadata."""

    def test_last_page_rounds_up(self) -> None:
        assert Page(items=[], count=23, page=1, page_size=10).last_page == 3
        assert Page(items=[], count=20, page=1, page_size=10).last_page == 2

    def test_empty_result(self) -> None:
        """No matches means zero pages and nothing on the current one."""
        page = Page(items=[], count=0, page=1, page_size=10)
        assert page.last_page == 0
        assert page.num_of_results_on_cur_page == 0
        assert not page.has_next

    def test_navigation_flags(self) -> None:
        page = Page(items=[1, 2], count=12, page=2, page_size=10)
        assert page.has_prev
        assert not page.has_next
        assert page.num_of_results_on_cur_page == 2


def _query(page: int = 1, page_size: int = 10, **kwargs) -> ProductQuery:
    product_filter = kwargs.pop("filter", ProductFilter())
    return ProductQuery(
        filter=product_filter,
        page=PageRequest(page=page, page_size=page_size),
        **kwargs,
    )


class TestPaginationAgainstDatabase:
    """Paging through real rows."""

    @pytest.mark.asyncio
    async def test_twenty_three_products(self, service, make_payload) -> None:
        """23 matches at size 10: pages of 10, 10 and 3."""
        for i in range(23):
            result = await service.create_product(make_payload(name=f"Product {i:02d}"))
            assert result.success

        listing = await service.get_products(_query(page=3))
        assert listing.success
        assert listing.page.count == 23
        assert listing.page.last_page == 3
        assert listing.page.num_of_results_on_cur_page == 3

    @pytest.mark.asyncio
    async def test_pages_partition_the_result(self, service, make_payload) -> None:
        """Walking every page yields each product exactly once."""
        for i in range(7):
            await service.create_product(
                make_payload(name=f"Product {i}", old_price=10 + (i % 3))
            )

        seen: list[int] = []
        for page_number in range(1, 4):
            listing = await service.get_products(
                _query(page=page_number, page_size=3, sort_by="price")
            )
            seen.extend(product.id for product in listing.page.items)

        assert len(seen) == 7
        assert len(set(seen)) == 7

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, service, make_payload) -> None:
        """An out-of-range page is empty but still reports the total."""
        await service.create_product(make_payload())

        listing = await service.get_products(_query(page=5))
        assert listing.success
        assert listing.page.items == []
        assert listing.page.count == 1
        assert listing.page.last_page == 1

    @pytest.mark.asyncio
    async def test_invalid_page_is_an_error(self, service) -> None:
        listing = await service.get_products(_query(page=0))
        assert not listing.success
        assert listing.error_code == "INVALID_PAGE"

    @pytest.mark.asyncio
    async def test_multi_category_product_counted_once(self, service, make_payload) -> None:
        """A product in several matching categories appears once."""
        await service.create_product(make_payload(name="Everywhere", category_ids=[1, 2, 3]))
        await service.create_product(make_payload(name="Shoes only", category_ids=[2]))

        listing = await service.get_products(
            _query(filter=ProductFilter(category_ids=[1, 2, 3]))
        )
        assert listing.page.count == 2
        assert sorted(p.name for p in listing.page.items) == ["Everywhere", "Shoes only"]

    @pytest.mark.asyncio
    async def test_sort_by_price_desc(self, service, make_payload) -> None:
        for price in (30, 10, 20):
            await service.create_product(make_payload(name=f"P{price}", old_price=price, discount=0))

        listing = await service.get_products(_query(sort_by="price", sort_order="desc"))
        prices = [p.price for p in listing.page.items]
        assert prices == [Decimal("30.00"), Decimal("20.00"), Decimal("10.00")]

    @pytest.mark.asyncio
    async def test_ties_break_by_id(self, service, make_payload) -> None:
        """Equal sort keys keep insertion order across pages."""
        ids = []
        for i in range(4):
            result = await service.create_product(make_payload(name="Same", old_price=50))
            ids.append(result.product_id)

        first = await service.get_products(_query(page=1, page_size=2, sort_by="name"))
        second = await service.get_products(_query(page=2, page_size=2, sort_by="name"))
        listed = [p.id for p in first.page.items] + [p.id for p in second.page.items]
        assert listed == ids

    @pytest.mark.asyncio
    async def test_unknown_sort_key_rejected(self, service) -> None:
        listing = await service.get_products(_query(sort_by="brands"))
        assert not listing.success
        assert listing.error_code == "INVALID_FILTER"
