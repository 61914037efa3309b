"""Product Catalog Service.

Provides membership encoding, filter compilation, pagination and
transactional product mutations for the product listing.
"""

from app.catalog.filters import ProductFilter, ProductQuery, SortSpec, compile_filter, parse_sort
from app.catalog.membership import BRAND_CODEC, OCCASION_CODEC, BracketedIdCodec, DelimitedTokenCodec
from app.catalog.models import Brand, Category, Comment, Occasion, Product, ProductCategory, Review
from app.catalog.pagination import Page, PageRequest, paginate
from app.catalog.repository import ProductRepository
from app.catalog.service import CatalogService, ListProductsResult, MutationResult

__all__ = [
    # Membership
    "BRAND_CODEC",
    "OCCASION_CODEC",
    "BracketedIdCodec",
    "DelimitedTokenCodec",
    # Models
    "Brand",
    "Category",
    "Comment",
    "Occasion",
    "Product",
    "ProductCategory",
    "Review",
    # Filters
    "ProductFilter",
    "ProductQuery",
    "SortSpec",
    "compile_filter",
    "parse_sort",
    # Pagination
    "Page",
    "PageRequest",
    "paginate",
    # Repository
    "ProductRepository",
    # Service
    "CatalogService",
    "ListProductsResult",
    "MutationResult",
]
