"""
Role and permission schemas.
"""

from pydantic import Field

from quotebuilder.models.role import PermissionResource
from quotebuilder.schemas.base import BaseSchema, TimestampSchema


class PermissionInput(BaseSchema):
    """Capabilities of a role on one resource."""

    resource: PermissionResource
    can_create: bool = False
    can_read: bool = True
    can_edit: bool = False
    can_delete: bool = False
    can_approve: bool = False
    can_export: bool = False
    can_bypass_approval: bool = False


class PermissionResponse(PermissionInput):
    """Permission row response."""

    id: int
    role_id: int


class RoleCreate(BaseSchema):
    """Schema for creating a role."""

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = None
    permissions: list[PermissionInput] = Field(default_factory=list)


class RolePermissionsUpdate(BaseSchema):
    """Replace the permissions of a role."""

    permissions: list[PermissionInput]


class RoleResponse(TimestampSchema):
    """Role response schema."""

    id: int
    name: str
    description: str | None
    is_protected: bool
    permissions: list[PermissionResponse]
