"""Product repository for database operations.

Provides reads, filtered pages, and the individual write statements the
mutation service composes into transactions. The repository never commits.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Brand, Category, Comment, Product, ProductCategory, Review
from app.catalog.pagination import Page, PageRequest, paginate

# Tables holding rows that reference a product, deleted before the product
# itself so foreign keys stay satisfied at every step.
PRODUCT_DEPENDENTS = (ProductCategory, Review, Comment)


class ProductRepository:
    """Repository for Product database operations.

    Example usage:
        async with async_session_factory() as session:
            repo = ProductRepository(session)
            page = await repo.find_page(
                compile_filter(ProductFilter(brand_ids=[5])),
                PageRequest(page=1, page_size=10),
            )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get_by_id(self, product_id: int) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        query = (
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_page(
        self,
        conditions: Sequence[ColumnElement[bool]],
        page_request: PageRequest,
        sort: Any | None = None,
    ) -> Page[Product]:
        """Find one page of products matching the compiled conditions.

        Args:
            conditions: Compiled filter conditions.
            page_request: Page number and size.
            sort: Optional sort spec.

        Returns:
            Page of products with count metadata.
        """
        return await paginate(self.session, conditions, page_request, sort)

    async def add(self, values: dict[str, Any]) -> Product:
        """Insert a product row and flush to obtain its id.

        Args:
            values: Column values.

        Returns:
            The new product.
        """
        product = Product(**values)
        self.session.add(product)
        await self.session.flush()
        return product

    async def update(self, product_id: int, values: dict[str, Any]) -> int:
        """Update a product row.

        Args:
            product_id: Product ID.
            values: Column values to set.

        Returns:
            Number of rows updated (0 when the product does not exist).
        """
        statement = (
            update(Product)
            .where(Product.id == product_id)
            .values(**values)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def add_category_links(
        self,
        product_id: int,
        category_ids: Iterable[int],
    ) -> int:
        """Insert one link row per category.

        Returns:
            Number of links inserted.
        """
        links = [
            ProductCategory(product_id=product_id, category_id=category_id)
            for category_id in dict.fromkeys(category_ids)
        ]
        if not links:
            return 0
        self.session.add_all(links)
        await self.session.flush()
        return len(links)

    async def delete_category_links(self, product_id: int) -> int:
        """Delete every link row of a product."""
        statement = delete(ProductCategory).where(ProductCategory.product_id == product_id)
        result = await self.session.execute(statement)
        return result.rowcount

    async def replace_category_links(
        self,
        product_id: int,
        category_ids: Iterable[int],
    ) -> int:
        """Delete all links of a product, then insert the given set.

        Returns:
            Number of links inserted.
        """
        await self.delete_category_links(product_id)
        return await self.add_category_links(product_id, category_ids)

    async def delete_cascade(self, product_id: int) -> int:
        """Delete a product and every row that references it.

        Dependents go first (links, reviews, comments), then the product.

        Args:
            product_id: Product ID.

        Returns:
            Number of product rows deleted (0 or 1).
        """
        for table in PRODUCT_DEPENDENTS:
            await self.session.execute(
                delete(table).where(table.product_id == product_id)
            )
        result = await self.session.execute(
            delete(Product).where(Product.id == product_id)
        )
        return result.rowcount

    async def get_categories(self, product_id: int) -> list[dict[str, Any]]:
        """Get the categories linked to a product.

        Args:
            product_id: Product ID.

        Returns:
            List of {"id", "name"} dicts ordered by category id.
        """
        query = (
            select(Category.id, Category.name)
            .join(ProductCategory, ProductCategory.category_id == Category.id)
            .where(ProductCategory.product_id == product_id)
            .order_by(Category.id)
        )
        result = await self.session.execute(query)
        return [{"id": row.id, "name": row.name} for row in result.all()]

    async def get_categories_for_products(
        self,
        product_ids: Iterable[int],
    ) -> dict[int, list[str]]:
        """Get category names for many products in one query.

        Args:
            product_ids: Product IDs.

        Returns:
            Mapping of product id to its category names; every requested id
            is present.
        """
        ids = list(dict.fromkeys(product_ids))
        categories: dict[int, list[str]] = {product_id: [] for product_id in ids}
        if not ids:
            return categories

        query = (
            select(ProductCategory.product_id, Category.name)
            .join(Category, Category.id == ProductCategory.category_id)
            .where(ProductCategory.product_id.in_(ids))
            .order_by(ProductCategory.product_id, Category.id)
        )
        result = await self.session.execute(query)
        for row in result.all():
            categories[row.product_id].append(row.name)
        return categories

    async def get_brand_names(self, brand_ids: Iterable[int]) -> dict[int, str | None]:
        """Map brand ids to names in one query.

        Args:
            brand_ids: Brand IDs.

        Returns:
            Mapping of id to name; unknown ids map to None.
        """
        ids = list(dict.fromkeys(int(b) for b in brand_ids))
        names: dict[int, str | None] = {brand_id: None for brand_id in ids}
        if not ids:
            return names

        result = await self.session.execute(
            select(Brand.id, Brand.name).where(Brand.id.in_(ids))
        )
        for row in result.all():
            names[row.id] = row.name
        return names
