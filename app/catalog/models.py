"""SQLAlchemy models for product catalog.

Defines the products table, its category junction table, the reference
tables it points at, and the review/comment tables that hang off a product.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.database import Base

CENT = Decimal("0.01")


def compute_effective_price(old_price: Decimal, discount: Decimal) -> Decimal:
    """Apply a percentage discount to a list price.

    Args:
        old_price: List price.
        discount: Discount percentage (0-100).

    Returns:
        Effective price rounded half-up to 2 decimal places.
    """
    old_price = Decimal(str(old_price))
    discount = Decimal(str(discount))
    price = old_price - old_price * discount / 100
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


class Product(Base):
    """Product entity in the catalog.

    Attributes:
        id: Generated integer identifier.
        name: Product name.
        description: Product description.
        rating: Average rating, optional.
        old_price: List price.
        discount: Discount percentage (0-100).
        price: Effective price, derived from old_price and discount.
        colors: Color descriptor.
        gender: One of men, women, boy, girl; optional.
        brands: Encoded brand id set (e.g. "[5,15]").
        occasion: Encoded occasion token set (e.g. "party,wedding").
        image_url: Image path, optional.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 1), nullable=True)
    old_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, index=True)
    colors: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    brands: Mapped[str] = mapped_column(String(500), nullable=False, default="[]")
    occasion: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name[:30]})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Brands and occasion stay in their stored, encoded form.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rating": float(self.rating) if self.rating is not None else None,
            "old_price": float(self.old_price),
            "discount": float(self.discount),
            "price": float(self.price),
            "colors": self.colors,
            "gender": self.gender,
            "brands": self.brands,
            "occasion": self.occasion,
            "image_url": self.image_url,
        }


class ProductCategory(Base):
    """Junction row linking one product to one category.

    Owned by the product: replaced wholesale on every edit.
    """

    __tablename__ = "product_categories"

    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductCategory(product_id={self.product_id}, category_id={self.category_id})>"


class Brand(Base):
    """Brand reference entity."""

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Category(Base):
    """Category reference entity."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Occasion(Base):
    """Occasion reference entity, keyed by its token."""

    __tablename__ = "occasions"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Review(Base):
    """Product review. Deleted together with its product."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_text: Mapped[str | None] = mapped_column(Text, nullable=True)


class Comment(Base):
    """Product comment. Deleted together with its product."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
