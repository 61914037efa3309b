"""Product API endpoints.

Parses listing query strings and product bodies, delegates to the catalog
service and maps its typed results onto HTTP status codes.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    CategorySchema,
    ErrorResponse,
    MessageResponse,
    ProductListItemSchema,
    ProductListResponse,
    ProductSchema,
)
from app.catalog.filters import ProductQuery
from app.catalog.membership import BRAND_CODEC, OCCASION_CODEC
from app.catalog.models import Product
from app.catalog.service import CatalogService, MutationResult, get_catalog_service
from app.domain.exceptions import CatalogError
from app.infrastructure.config import settings
from app.infrastructure.database import get_session

router = APIRouter(prefix="/products", tags=["Products"])

STATUS_BY_ERROR_CODE = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_FILTER": status.HTTP_400_BAD_REQUEST,
    "INVALID_PAGE": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PERSISTENCE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_catalog_service(session, request_id=request_id)


# ============================================================================
# Converters
# ============================================================================


def error_to_http(error_code: str | None, message: str | None) -> HTTPException:
    """Build an HTTPException for a catalog error code."""
    return HTTPException(
        status_code=STATUS_BY_ERROR_CODE.get(
            error_code or "", status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        detail={
            "error_code": error_code or "ERROR",
            "message": message or "Request failed",
        },
    )


def catalog_error_to_http(exc: CatalogError) -> HTTPException:
    return error_to_http(exc.error_code, exc.message)


def mutation_to_response(result: MutationResult) -> MessageResponse:
    """Return the success body, or raise for a failed mutation."""
    if not result.success:
        raise error_to_http(result.error_code, result.error)
    return MessageResponse(message=result.message or "", product_id=result.product_id)


def product_data(product: Product) -> dict[str, Any]:
    """Product fields with brand and occasion sets decoded."""
    data = product.to_dict()
    data["brands"] = BRAND_CODEC.decode(product.brands)
    data["occasion"] = OCCASION_CODEC.decode(product.occasion)
    return data


def product_to_response(product: Product) -> ProductSchema:
    return ProductSchema(**product_data(product))


def clamp_page_size(page_size: int) -> int:
    """Fall back to the default size for sizes the listing does not offer."""
    if page_size in settings.allowed_page_sizes:
        return page_size
    return settings.default_page_size


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="List products",
    description="Filter, sort and paginate the product catalog.",
)
async def list_products(
    request: Request,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductListResponse:
    """List products.

    Query parameters: page, pageSize, sortBy (e.g. "price-desc"),
    sortOrder, brandId and categoryId (comma-separated ids),
    priceRangeFrom, priceRangeTo, gender, occasions (comma-separated),
    discount ("min-max") and minDiscount.

    Raises:
        HTTPException: For invalid filters/pages or storage failures.
    """
    try:
        query = ProductQuery.from_params(dict(request.query_params))
        query.page.page_size = clamp_page_size(query.page.page_size)
        result = await service.get_products(query)
    except CatalogError as e:
        raise catalog_error_to_http(e) from e

    if not result.success or result.page is None:
        raise error_to_http(result.error_code, result.error)

    page = result.page
    try:
        brand_names = await service.get_brand_names(
            brand_id for product in page.items for brand_id in BRAND_CODEC.decode(product.brands)
        )
        category_names = await service.get_categories_for_products(
            product.id for product in page.items
        )
    except CatalogError as e:
        raise catalog_error_to_http(e) from e

    items = []
    for product in page.items:
        data = product_data(product)
        items.append(
            ProductListItemSchema(
                **data,
                brand_names=[
                    brand_names[b] for b in data["brands"] if brand_names.get(b)
                ],
                category_names=category_names.get(product.id, []),
            )
        )

    return ProductListResponse(
        products=items,
        count=page.count,
        last_page=page.last_page,
        num_of_results_on_cur_page=page.num_of_results_on_cur_page,
        page=page.page,
        page_size=page.page_size,
        has_more=page.has_next,
    )


@router.get(
    "/{product_id}",
    response_model=ProductSchema,
    responses=ERROR_RESPONSES,
    summary="Get product details",
)
async def get_product(
    product_id: int,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductSchema:
    """Get a product by ID.

    Raises:
        HTTPException: 404 if the product does not exist, 503 if the store
            is unavailable.
    """
    try:
        product = await service.get_product(product_id)
    except CatalogError as e:
        raise catalog_error_to_http(e) from e
    return product_to_response(product)


@router.get(
    "/{product_id}/categories",
    response_model=list[CategorySchema],
    responses=ERROR_RESPONSES,
    summary="Get product categories",
)
async def get_product_categories(
    product_id: int,
    service: Annotated[CatalogService, Depends(get_service)],
) -> list[CategorySchema]:
    """Get the categories linked to a product."""
    try:
        categories = await service.get_product_categories(product_id)
    except CatalogError as e:
        raise catalog_error_to_http(e) from e
    return [CategorySchema(**category) for category in categories]


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create product",
)
async def create_product(
    payload: Annotated[dict[str, Any], Body()],
    service: Annotated[CatalogService, Depends(get_service)],
) -> MessageResponse:
    """Create a product with its category links."""
    result = await service.create_product(payload)
    return mutation_to_response(result)


@router.put(
    "/{product_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Edit product",
)
async def edit_product(
    product_id: int,
    payload: Annotated[dict[str, Any], Body()],
    service: Annotated[CatalogService, Depends(get_service)],
) -> MessageResponse:
    """Replace a product's fields and category links."""
    result = await service.edit_product({**payload, "id": product_id})
    return mutation_to_response(result)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Delete product",
)
async def delete_product(
    product_id: int,
    service: Annotated[CatalogService, Depends(get_service)],
) -> MessageResponse:
    """Delete a product together with its links, reviews and comments."""
    result = await service.delete_product(product_id)
    return mutation_to_response(result)
