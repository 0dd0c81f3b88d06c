"""
Role management endpoints.
Roles carry per-resource permissions that drive every access check.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, status

from quotebuilder.api.deps import DbSession, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.schemas.role import RoleCreate, RolePermissionsUpdate, RoleResponse
from quotebuilder.services.role import RoleService


router = APIRouter()

RoleReader = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.READ))]
RoleCreator = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.CREATE))]
RoleEditor = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.EDIT))]
RoleDeleter = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.DELETE))]


@router.get(
    "",
    response_model=list[RoleResponse],
    summary="List roles",
)
async def list_roles(
    current_user: RoleReader,
    db: DbSession,
) -> list[RoleResponse]:
    roles = await RoleService(db).list()
    return [RoleResponse.model_validate(r) for r in roles]


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a role",
)
async def create_role(
    data: RoleCreate,
    current_user: RoleCreator,
    db: DbSession,
) -> RoleResponse:
    role = await RoleService(db).create(data)
    return RoleResponse.model_validate(role)


@router.put(
    "/{role_id}/permissions",
    response_model=RoleResponse,
    summary="Replace role permissions",
)
async def update_role_permissions(
    role_id: int,
    data: RolePermissionsUpdate,
    current_user: RoleEditor,
    db: DbSession,
) -> RoleResponse:
    service = RoleService(db)
    role = await service.get_or_404(role_id)
    role = await service.replace_permissions(role, data.permissions)
    return RoleResponse.model_validate(role)


@router.delete(
    "/{role_id}",
    response_model=MessageResponse,
    summary="Delete a role",
)
async def delete_role(
    role_id: int,
    current_user: RoleDeleter,
    db: DbSession,
) -> MessageResponse:
    service = RoleService(db)
    role = await service.get_or_404(role_id)
    await service.delete(role)
    return MessageResponse(message="Role deleted")
