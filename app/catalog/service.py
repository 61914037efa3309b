"""Catalog service for product operations.

High-level service that combines repository operations with validation,
price derivation, transactions and cache invalidation.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.cache import RequestCache
from app.catalog.filters import ProductQuery, compile_filter, parse_sort
from app.catalog.invalidation import InvalidationSink, get_invalidator
from app.catalog.membership import BRAND_CODEC, OCCASION_CODEC
from app.catalog.models import Product
from app.catalog.pagination import Page
from app.catalog.repository import ProductRepository
from app.catalog.validation import EditProductPayload, ProductPayload, validate_payload
from app.domain.exceptions import (
    CatalogError,
    InvalidFilterError,
    InvalidPageError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.infrastructure.config import settings

logger = structlog.get_logger()

PRODUCT_CREATED = "Product created successfully"
PRODUCT_UPDATED = "Product updated successfully"
PRODUCT_DELETED = "Product deleted successfully"

CREATE_FAILED = "Could not create the product"
UPDATE_FAILED = "Could not update the product"
DELETE_FAILED = "Something went wrong, Cannot delete the product"

# Optional columns left untouched on edit unless the payload sends them
OPTIONAL_COLUMNS = ("rating", "gender", "image_url")


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class MutationResult:
    """Result of a create, edit or delete."""

    success: bool = True
    message: str | None = None
    error: str | None = None
    error_code: str | None = None
    product_id: int | None = None

    @classmethod
    def failure(cls, exc: CatalogError, product_id: int | None = None) -> "MutationResult":
        """Build a failed result from a catalog error."""
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.error_code,
            product_id=product_id,
        )


@dataclass
class ListProductsResult:
    """Result of a listing query."""

    page: Page[Product] | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None


def coerce_product_id(value: Any) -> int:
    """Validate a product id argument.

    Raises:
        ValidationError: If the id is not an integer.
    """
    if isinstance(value, bool):
        raise ValidationError("Id must be a number", field="id")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Id must be a number", field="id") from None


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Service for catalog queries and mutations.

    One instance serves one request: its product cache is request-scoped.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(session)

            result = await service.create_product(payload)

            listing = await service.get_products(
                ProductQuery(filter=ProductFilter(brand_ids=[5])),
            )
    """

    def __init__(
        self,
        session: AsyncSession,
        invalidator: InvalidationSink | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            invalidator: Sink notified after each successful mutation.
            request_id: Request ID for correlation.
        """
        self.session = session
        self.repository = ProductRepository(session)
        self.invalidator = invalidator or get_invalidator()
        self.request_id = request_id
        self.cache = RequestCache()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_products(self, query: ProductQuery) -> ListProductsResult:
        """List products matching a filter, one page at a time.

        Args:
            query: Filter, sort and page request.

        Returns:
            ListProductsResult with the page, or the filter/page error.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        try:
            sort = parse_sort(query.sort_by, query.sort_order)
            conditions = compile_filter(query.filter)
            query.page.validate()
        except (InvalidFilterError, InvalidPageError) as e:
            logger.info(
                "Listing request rejected",
                error_code=e.error_code,
                error=e.message,
                request_id=self.request_id,
            )
            return ListProductsResult(
                success=False,
                error=e.message,
                error_code=e.error_code,
            )

        try:
            page = await self.repository.find_page(conditions, query.page, sort)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to list products",
                error=str(e),
                request_id=self.request_id,
            )
            raise PersistenceError("Could not load products") from e

        logger.debug(
            "Products listed",
            count=page.count,
            page=page.page,
            page_size=page.page_size,
            request_id=self.request_id,
        )
        return ListProductsResult(page=page)

    async def get_product(self, product_id: int) -> Product:
        """Get product by ID, memoized for the life of this service.

        Args:
            product_id: Product ID.

        Returns:
            The product.

        Raises:
            NotFoundError: If no product has this id.
            PersistenceError: If the store cannot be queried.
        """
        return await self.cache.get_or_load(
            product_id, lambda: self._load_product(product_id)
        )

    async def _load_product(self, product_id: int) -> Product:
        try:
            product = await self.repository.get_by_id(product_id)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to load product",
                product_id=product_id,
                error=str(e),
                request_id=self.request_id,
            )
            raise PersistenceError("Could not load the product") from e
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def get_product_categories(self, product_id: int) -> list[dict[str, Any]]:
        """Get the categories linked to a product.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        try:
            return await self.repository.get_categories(product_id)
        except SQLAlchemyError as e:
            raise PersistenceError("Could not load product categories") from e

    async def get_categories_for_products(
        self,
        product_ids: Iterable[int],
    ) -> dict[int, list[str]]:
        """Get category names for several products at once.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        try:
            return await self.repository.get_categories_for_products(product_ids)
        except SQLAlchemyError as e:
            raise PersistenceError("Could not load product categories") from e

    async def get_brand_names(self, brand_ids: Iterable[int]) -> dict[int, str | None]:
        """Map brand ids to brand names.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        try:
            return await self.repository.get_brand_names(brand_ids)
        except SQLAlchemyError as e:
            raise PersistenceError("Could not load brands") from e

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_product(self, payload: Any) -> MutationResult:
        """Create a product and its category links in one transaction.

        Args:
            payload: Raw product payload.

        Returns:
            MutationResult with the new product id, or the first error.
        """
        try:
            data = validate_payload(payload, ProductPayload)
        except ValidationError as e:
            return MutationResult.failure(e)

        try:
            async with self._transaction("create_product", CREATE_FAILED):
                product = await self.repository.add(self._product_values(data))
                product_id = product.id
                await self.repository.add_category_links(product_id, data.category_ids)
        except PersistenceError as e:
            return MutationResult.failure(e)

        self._after_mutation()
        logger.info(
            "Product created",
            product_id=product_id,
            price=str(data.effective_price),
            category_count=len(data.category_ids),
            request_id=self.request_id,
        )
        return MutationResult(message=PRODUCT_CREATED, product_id=product_id)

    async def edit_product(self, payload: Any) -> MutationResult:
        """Update a product and replace its category links in one transaction.

        Args:
            payload: Raw product payload including the product id.

        Returns:
            MutationResult, or the first error.
        """
        try:
            data = validate_payload(payload, EditProductPayload)
        except ValidationError as e:
            return MutationResult.failure(e)

        product_id = data.id
        values = self._product_values(data)
        for column in OPTIONAL_COLUMNS:
            if column not in data.model_fields_set:
                values.pop(column)

        try:
            async with self._transaction("edit_product", UPDATE_FAILED, product_id=product_id):
                updated = await self.repository.update(product_id, values)
                if not updated:
                    raise NotFoundError("Product", product_id)
                await self.repository.replace_category_links(product_id, data.category_ids)
        except (NotFoundError, PersistenceError) as e:
            return MutationResult.failure(e, product_id=product_id)

        self._after_mutation()
        logger.info(
            "Product updated",
            product_id=product_id,
            price=str(data.effective_price),
            category_count=len(data.category_ids),
            request_id=self.request_id,
        )
        return MutationResult(message=PRODUCT_UPDATED, product_id=product_id)

    async def delete_product(self, product_id: Any) -> MutationResult:
        """Delete a product with its links, reviews and comments.

        Dependents are removed before the product inside one transaction, so
        foreign key enforcement stays on throughout.

        Args:
            product_id: Product ID.

        Returns:
            MutationResult, or the error.
        """
        try:
            product_id = coerce_product_id(product_id)
        except ValidationError as e:
            return MutationResult.failure(e)

        try:
            async with self._transaction("delete_product", DELETE_FAILED, product_id=product_id):
                deleted = await self.repository.delete_cascade(product_id)
                if not deleted:
                    raise NotFoundError("Product", product_id)
        except (NotFoundError, PersistenceError) as e:
            return MutationResult.failure(e, product_id=product_id)

        self._after_mutation()
        logger.info(
            "Product deleted",
            product_id=product_id,
            request_id=self.request_id,
        )
        return MutationResult(message=PRODUCT_DELETED, product_id=product_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(
        self,
        operation: str,
        failure_message: str,
        **context: Any,
    ) -> AsyncIterator[None]:
        """Commit the enclosed writes, or roll all of them back.

        Raises:
            PersistenceError: If any statement or the commit fails.
        """
        try:
            yield
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.cache.invalidate()
            logger.error(
                "Transaction rolled back",
                operation=operation,
                error=str(e),
                request_id=self.request_id,
                **context,
            )
            raise PersistenceError(failure_message, details={"operation": operation}) from e
        except Exception:
            await self.session.rollback()
            self.cache.invalidate()
            raise

    def _product_values(self, data: ProductPayload) -> dict[str, Any]:
        return {
            "name": data.name,
            "description": data.description,
            "rating": data.rating,
            "old_price": data.old_price,
            "discount": data.discount,
            "price": data.effective_price,
            "colors": data.colors,
            "gender": data.gender,
            "brands": BRAND_CODEC.encode(data.brand_ids),
            "occasion": OCCASION_CODEC.encode(data.occasion_tokens),
            "image_url": data.image_url,
        }

    def _after_mutation(self) -> None:
        self.cache.invalidate()
        self.invalidator.mark_stale(settings.products_path)


def get_catalog_service(
    session: AsyncSession,
    request_id: str | None = None,
) -> CatalogService:
    """Create a catalog service bound to a request's session."""
    return CatalogService(session, request_id=request_id)
