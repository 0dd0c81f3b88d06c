"""
Role and permission models.
Roles are dynamic: an admin can create any role and tick capabilities per resource.
"""

from typing import Optional, List, TYPE_CHECKING
from enum import Enum
from sqlalchemy import String, Text, Boolean, ForeignKey, Integer, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebuilder.models.base import BaseModel

if TYPE_CHECKING:
    from quotebuilder.models.user import User


class PermissionResource(str, Enum):
    """Resources a permission row applies to."""
    CATEGORIES = "categories"
    PRODUCTS = "products"
    CLIENTS = "clients"
    QUOTES = "quotes"
    ROLES = "roles"


class PermissionAction(str, Enum):
    """Capability flags stored on a permission row."""
    CREATE = "can_create"
    READ = "can_read"
    EDIT = "can_edit"
    DELETE = "can_delete"
    APPROVE = "can_approve"
    EXPORT = "can_export"
    BYPASS_APPROVAL = "can_bypass_approval"


class Role(BaseModel):
    """
    User role.

    Attributes:
        name: Unique display name (Admin, Sales, Sales Head, ...)
        description: Free text
        is_protected: Protected roles cannot be renamed or deleted
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_protected: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    permissions: Mapped[List["RolePermission"]] = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="role",
        passive_deletes=True,
    )

    def permission_for(self, resource: PermissionResource) -> Optional["RolePermission"]:
        return next((p for p in self.permissions if p.resource == resource), None)

    def has_permission(self, resource: PermissionResource, action: PermissionAction) -> bool:
        """Check one capability flag for one resource."""
        permission = self.permission_for(resource)
        return bool(permission and getattr(permission, action.value))

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name='{self.name}')>"


class RolePermission(BaseModel):
    """Capabilities of a role on one resource."""

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "resource", name="uq_role_permissions_role_resource"),
    )

    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource: Mapped[PermissionResource] = mapped_column(
        SQLEnum(PermissionResource),
        nullable=False,
    )

    can_create: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_read: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    can_edit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_delete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_approve: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_export: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_bypass_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    role: Mapped["Role"] = relationship(
        "Role",
        back_populates="permissions",
    )

    def __repr__(self) -> str:
        return f"<RolePermission(role_id={self.role_id}, resource='{self.resource}')>"
