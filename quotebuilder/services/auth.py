"""
Authentication service.
Handles user registration, login, and token management.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from quotebuilder.core.config import settings
from quotebuilder.core.exceptions import AuthenticationError, AuthorizationError, ConflictError
from quotebuilder.models.role import Role
from quotebuilder.models.user import User
from quotebuilder.schemas.auth import RegisterRequest, LoginRequest
from quotebuilder.core.security import (
    get_password_hash,
    verify_password,
    create_token_pair,
    decode_token,
    TokenPair,
)


logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, data: RegisterRequest) -> User:
        """
        Register a new user with the default role.

        Args:
            data: Registration data

        Returns:
            Created user

        Raises:
            ConflictError: If email already exists
        """
        if await self.get_user_by_email(data.email):
            raise ConflictError("An account with this email already exists", email=data.email)

        role_result = await self.db.execute(
            select(Role).where(Role.name == settings.DEFAULT_ROLE_NAME)
        )
        role = role_result.scalar_one_or_none()
        if role is None:
            logger.warning("Default role '%s' does not exist, user registered without role", settings.DEFAULT_ROLE_NAME)

        user = User(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            full_name=data.full_name,
            phone=data.phone,
            role_id=role.id if role else None,
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user, ["role"])
        logger.info("Registered user %s", user.email)

        return user

    async def login(self, data: LoginRequest) -> tuple[User, TokenPair]:
        """
        Authenticate user and generate tokens.

        Raises:
            AuthenticationError: If credentials are invalid
            AuthorizationError: If the account is disabled
        """
        user = await self.get_user_by_email(data.email)

        if not user or not verify_password(data.password, user.hashed_password):
            logger.info("Failed login for %s", data.email)
            raise AuthenticationError("Incorrect email or password")

        if not user.is_active:
            raise AuthorizationError("Account disabled")

        return user, create_token_pair(user.id, user.email, user.role_name)

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        """
        Generate new token pair from refresh token.

        Raises:
            AuthenticationError: If refresh token is invalid or the user is gone
        """
        token_data = decode_token(refresh_token)

        if token_data is None or token_data.token_type != "refresh":
            raise AuthenticationError("Invalid refresh token")

        user = await self.get_user_by_id(token_data.user_id)

        if not user:
            raise AuthenticationError("User not found")

        if not user.is_active:
            raise AuthorizationError("Account disabled")

        return create_token_pair(user.id, user.email, user.role_name)

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email."""
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()
