"""
Category management endpoints.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, Query, status

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.schemas.product import CategoryCreate, CategoryResponse, CategoryUpdate
from quotebuilder.services.catalog import CategoryService


router = APIRouter()

CategoryReader = Annotated[User, Depends(require_permission(PermissionResource.CATEGORIES, PermissionAction.READ))]
CategoryCreator = Annotated[User, Depends(require_permission(PermissionResource.CATEGORIES, PermissionAction.CREATE))]
CategoryEditor = Annotated[User, Depends(require_permission(PermissionResource.CATEGORIES, PermissionAction.EDIT))]
CategoryDeleter = Annotated[User, Depends(require_permission(PermissionResource.CATEGORIES, PermissionAction.DELETE))]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    data: CategoryCreate,
    current_user: CategoryCreator,
    db: DbSession,
) -> CategoryResponse:
    category = await CategoryService(db).create(data)
    return CategoryResponse.model_validate(category)


@router.get(
    "",
    response_model=list[CategoryResponse],
    summary="List categories",
)
async def list_categories(
    current_user: CategoryReader,
    db: DbSession,
    is_active: bool | None = Query(None, description="Filter by active status"),
) -> list[CategoryResponse]:
    categories = await CategoryService(db).list(is_active=is_active)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Category details",
)
async def get_category(
    category_id: int,
    current_user: CategoryReader,
    db: DbSession,
) -> CategoryResponse:
    category = await CategoryService(db).get_or_404(category_id)
    return CategoryResponse.model_validate(category)


@router.patch(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update a category",
)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: CategoryEditor,
    db: DbSession,
) -> CategoryResponse:
    service = CategoryService(db)
    category = await service.get_or_404(category_id)
    category = await service.update(category, data)
    return CategoryResponse.model_validate(category)


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    summary="Deactivate a category",
)
async def delete_category(
    category_id: int,
    current_user: CategoryDeleter,
    db: DbSession,
) -> MessageResponse:
    service = CategoryService(db)
    category = await service.get_or_404(category_id)
    await service.delete(category)
    return MessageResponse(message="Category deactivated")
