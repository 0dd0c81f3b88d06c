"""
Catalog schemas: categories and products.
"""

from decimal import Decimal
from pydantic import Field

from quotebuilder.schemas.base import BaseSchema, PaginatedResponse, TimestampSchema


class CategoryCreate(BaseSchema):
    """Schema for creating a category."""

    name: str = Field(..., min_length=2, max_length=255)
    description: str | None = None
    parent_id: int | None = None


class CategoryUpdate(BaseSchema):
    """Schema for updating a category."""

    name: str | None = Field(None, min_length=2, max_length=255)
    description: str | None = None
    parent_id: int | None = None
    is_active: bool | None = None


class CategoryResponse(CategoryCreate, TimestampSchema):
    """Category response schema."""

    id: int
    is_active: bool


class ProductBase(BaseSchema):
    """Base product schema with common fields."""

    item_code: str | None = Field(None, max_length=100)
    name: str = Field(..., min_length=2, max_length=255)
    description: str | None = None
    category_id: int | None = None
    base_rate: Decimal = Field(..., ge=0, decimal_places=2)
    unit: str = Field(default="nos", max_length=50)
    is_area_priced: bool = False


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(BaseSchema):
    """Schema for updating a product."""

    item_code: str | None = Field(None, max_length=100)
    name: str | None = Field(None, min_length=2, max_length=255)
    description: str | None = None
    category_id: int | None = None
    base_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    unit: str | None = Field(None, max_length=50)
    is_area_priced: bool | None = None
    is_active: bool | None = None


class ProductResponse(ProductBase, TimestampSchema):
    """Product response schema."""

    id: int
    is_active: bool
    category_name: str | None


class ProductListResponse(PaginatedResponse):
    """Paginated product list response."""

    items: list[ProductResponse]
