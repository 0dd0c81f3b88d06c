"""
Role service.
Dynamic roles and their per-resource permissions.
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from quotebuilder.core.exceptions import ConflictError, NotFoundError, ValidationError
from quotebuilder.models.role import Role, RolePermission
from quotebuilder.models.user import User
from quotebuilder.schemas.role import PermissionInput, RoleCreate


logger = logging.getLogger(__name__)


class RoleService:
    """Service for role operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> list[Role]:
        result = await self.db.execute(select(Role).order_by(Role.name))
        return list(result.scalars().all())

    async def get_or_404(self, role_id: int) -> Role:
        result = await self.db.execute(
            select(Role).where(Role.id == role_id).execution_options(populate_existing=True)
        )
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError("Role", role_id)
        return role

    async def create(self, data: RoleCreate) -> Role:
        """
        Create a role with its permissions.

        Raises:
            ConflictError: If the name is taken
        """
        existing = await self.db.execute(select(Role.id).where(Role.name == data.name))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"Role '{data.name}' already exists", name=data.name)

        role = Role(name=data.name, description=data.description)
        role.permissions = self._build_permissions(data.permissions)
        self.db.add(role)
        await self.db.flush()
        logger.info("Created role %s", role.name)

        return await self.get_or_404(role.id)

    async def replace_permissions(self, role: Role, permissions: List[PermissionInput]) -> Role:
        """Replace every permission row of a role."""
        role.permissions.clear()
        await self.db.flush()
        role.permissions.extend(self._build_permissions(permissions))
        await self.db.flush()
        logger.info("Updated permissions of role %s", role.name)

        return await self.get_or_404(role.id)

    async def delete(self, role: Role) -> None:
        """
        Delete a role. Users holding it are left without a role.

        Raises:
            ValidationError: If the role is protected
        """
        if role.is_protected:
            raise ValidationError(f"Role '{role.name}' is protected and cannot be deleted")
        await self.db.execute(
            update(User).where(User.role_id == role.id).values(role_id=None)
        )
        await self.db.delete(role)
        await self.db.flush()
        logger.info("Deleted role %s", role.name)

    @staticmethod
    def _build_permissions(permissions: List[PermissionInput]) -> List[RolePermission]:
        resources = [p.resource for p in permissions]
        if len(resources) != len(set(resources)):
            raise ValidationError("Each resource may appear only once in a role's permissions")
        return [RolePermission(**p.model_dump()) for p in permissions]
