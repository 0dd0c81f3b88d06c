"""
User service.
Handles profile management and role assignment.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from quotebuilder.core.exceptions import NotFoundError, ValidationError
from quotebuilder.core.security import get_password_hash, verify_password
from quotebuilder.models.role import Role
from quotebuilder.models.user import User
from quotebuilder.schemas.user import UserUpdate


class UserService:
    """Service for user operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_404(self, user_id: int) -> User:
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def list(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.full_name))
        return list(result.scalars().all())

    async def update(self, user: User, data: UserUpdate) -> User:
        """Update user profile."""
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)

        return user

    async def assign_role(self, user: User, role_id: int | None) -> User:
        """Give a user another role, or none."""
        if role_id is not None:
            role = await self.db.get(Role, role_id)
            if role is None:
                raise NotFoundError("Role", role_id)

        user.role_id = role_id
        await self.db.flush()
        await self.db.refresh(user, ["role"])

        return user

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
    ) -> User:
        """
        Change user password.

        Raises:
            ValidationError: If current password is incorrect
        """
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")

        user.hashed_password = get_password_hash(new_password)

        await self.db.flush()
        await self.db.refresh(user)

        return user
