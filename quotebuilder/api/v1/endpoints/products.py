"""
Product management endpoints.
CRUD operations for catalog products.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, Query, status

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
)
from quotebuilder.services.catalog import ProductService


router = APIRouter()

ProductReader = Annotated[User, Depends(require_permission(PermissionResource.PRODUCTS, PermissionAction.READ))]
ProductCreator = Annotated[User, Depends(require_permission(PermissionResource.PRODUCTS, PermissionAction.CREATE))]
ProductEditor = Annotated[User, Depends(require_permission(PermissionResource.PRODUCTS, PermissionAction.EDIT))]
ProductDeleter = Annotated[User, Depends(require_permission(PermissionResource.PRODUCTS, PermissionAction.DELETE))]


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    description="Add a product to the catalog",
)
async def create_product(
    data: ProductCreate,
    current_user: ProductCreator,
    db: DbSession,
) -> ProductResponse:
    """Create a new product."""
    service = ProductService(db)
    product = await service.create(data)
    return ProductResponse.model_validate(product)


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="Get the paginated product catalog",
)
async def list_products(
    current_user: ProductReader,
    db: DbSession,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    search: str | None = Query(None, description="Search by name or item code"),
    category_id: int | None = Query(None, description="Filter by category"),
    is_active: bool | None = Query(None, description="Filter by active status"),
) -> ProductListResponse:
    """List products with pagination."""
    service = ProductService(db)
    skip = (page - 1) * per_page

    products, total = await service.list(
        skip=skip,
        limit=per_page,
        search=search,
        category_id=category_id,
        is_active=is_active,
    )

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        per_page=per_page,
        pages=ProductListResponse.page_count(total, per_page),
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Product details",
)
async def get_product(
    product_id: int,
    current_user: ProductReader,
    db: DbSession,
) -> ProductResponse:
    """Get a product by ID."""
    service = ProductService(db)
    product = await service.get_or_404(product_id)
    return ProductResponse.model_validate(product)


@router.patch(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Existing quotes keep the rate they were saved with",
)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_user: ProductEditor,
    db: DbSession,
) -> ProductResponse:
    """Update a product."""
    service = ProductService(db)
    product = await service.get_or_404(product_id)
    product = await service.update(product, data)
    return ProductResponse.model_validate(product)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    summary="Deactivate a product",
)
async def delete_product(
    product_id: int,
    current_user: ProductDeleter,
    db: DbSession,
) -> MessageResponse:
    """Deactivate a product. Quotes referencing it are unaffected."""
    service = ProductService(db)
    product = await service.get_or_404(product_id)
    await service.delete(product)
    return MessageResponse(message="Product deactivated")
