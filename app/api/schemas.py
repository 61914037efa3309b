"""API schemas for the catalog API.

Pydantic models for response serialization. Request bodies for product
mutations are passed through raw so the catalog's validation contract
decides what is reported.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class MessageResponse(BaseModel):
    """Successful mutation response."""

    message: str = Field(..., description="Human-readable result")
    product_id: int | None = Field(default=None, description="Affected product")


# ============================================================================
# Product Schemas
# ============================================================================


class CategorySchema(BaseModel):
    """Category linked to a product."""

    id: int
    name: str


class ProductSchema(BaseModel):
    """Product details."""

    id: int
    name: str
    description: str
    rating: float | None = None
    old_price: float = Field(..., description="List price")
    discount: float = Field(..., description="Discount percentage")
    price: float = Field(..., description="Effective price after discount")
    colors: str
    gender: str | None = None
    brands: list[int] = Field(default_factory=list, description="Brand ids")
    occasion: list[str] = Field(default_factory=list, description="Occasion tokens")
    image_url: str | None = None


class ProductListItemSchema(ProductSchema):
    """Product row in the listing table, with resolved names."""

    brand_names: list[str] = Field(default_factory=list)
    category_names: list[str] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    """Paginated product listing."""

    products: list[ProductListItemSchema]
    count: int = Field(..., description="Total number of matching products")
    last_page: int = Field(..., description="Number of the last page")
    num_of_results_on_cur_page: int = Field(..., description="Products on this page")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    has_more: bool = Field(..., description="Whether there are more pages")
