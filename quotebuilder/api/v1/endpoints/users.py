"""
User management endpoints.
Profile update, password change, role assignment.
"""

from typing import Annotated
from fastapi import APIRouter, Depends

from quotebuilder.api.deps import DbSession, CurrentUser, require_permission
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User
from quotebuilder.schemas.user import (
    PasswordChangeRequest,
    UserResponse,
    UserRoleUpdate,
    UserUpdate,
)
from quotebuilder.schemas.base import MessageResponse
from quotebuilder.services.user import UserService


router = APIRouter()

RoleReader = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.READ))]
RoleEditor = Annotated[User, Depends(require_permission(PermissionResource.ROLES, PermissionAction.EDIT))]


@router.get(
    "/me",
    response_model=UserResponse,
    summary="My profile",
    description="Get my user profile",
)
async def get_my_profile(
    current_user: CurrentUser,
) -> UserResponse:
    """Get current user's profile."""
    return UserResponse.model_validate(current_user)


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update my profile",
    description="Update my name or phone number",
)
async def update_my_profile(
    data: UserUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> UserResponse:
    """Update current user's profile."""
    service = UserService(db)
    user = await service.update(current_user, data)
    return UserResponse.model_validate(user)


@router.post(
    "/me/change-password",
    response_model=MessageResponse,
    summary="Change password",
    description="Change my password",
)
async def change_password(
    data: PasswordChangeRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """Change current user's password."""
    service = UserService(db)
    await service.change_password(
        current_user,
        data.current_password,
        data.new_password,
    )
    return MessageResponse(message="Password changed")


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
    description="List every user with their role",
)
async def list_users(
    current_user: RoleReader,
    db: DbSession,
) -> list[UserResponse]:
    """List users."""
    users = await UserService(db).list()
    return [UserResponse.model_validate(u) for u in users]


@router.put(
    "/{user_id}/role",
    response_model=UserResponse,
    summary="Assign role",
    description="Give a user another role",
)
async def assign_role(
    user_id: int,
    data: UserRoleUpdate,
    current_user: RoleEditor,
    db: DbSession,
) -> UserResponse:
    """Assign a role to a user."""
    service = UserService(db)
    user = await service.get_or_404(user_id)
    user = await service.assign_role(user, data.role_id)
    return UserResponse.model_validate(user)
