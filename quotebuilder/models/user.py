"""
User model for authentication and role-based permissions.
All users work on the same company catalog and quote book.
"""

from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebuilder.models.base import BaseModel
from quotebuilder.models.role import PermissionAction, PermissionResource

if TYPE_CHECKING:
    from quotebuilder.models.role import Role


class User(BaseModel):
    """
    User model.

    Attributes:
        email: Unique email for authentication
        hashed_password: Bcrypt hashed password
        full_name: Display name, printed as "prepared by" on quotes
        phone: Contact phone number
        role_id: Role granting the user's permissions
        is_active: Whether the account is active
    """

    __tablename__ = "users"

    # Authentication
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Personal info
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    # Authorization
    role_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Account status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    role: Mapped[Optional["Role"]] = relationship(
        "Role",
        back_populates="users",
        lazy="selectin",
    )

    @property
    def role_name(self) -> Optional[str]:
        return self.role.name if self.role else None

    def has_permission(self, resource: PermissionResource, action: PermissionAction) -> bool:
        """Users without a role have no permissions at all."""
        return bool(self.role and self.role.has_permission(resource, action))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role_name}')>"
