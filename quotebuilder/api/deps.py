"""
API Dependencies.
Common dependencies for authentication, permissions and database sessions.
"""

import logging
from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from quotebuilder.core.database import get_db
from quotebuilder.core.exceptions import AuthenticationError, AuthorizationError
from quotebuilder.core.security import decode_token
from quotebuilder.models.role import PermissionAction, PermissionResource
from quotebuilder.models.user import User


logger = logging.getLogger(__name__)

# Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the current user from the JWT access token.

    Args:
        credentials: Bearer JWT
        db: Database session

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If the token is missing, invalid or the user is gone
    """
    if not credentials:
        logger.warning("Request without token")
        raise AuthenticationError()

    token_data = decode_token(credentials.credentials)

    if token_data is None:
        logger.warning("Invalid or expired token")
        raise AuthenticationError()

    if token_data.token_type != "access":
        logger.warning("Wrong token type: %s", token_data.token_type)
        raise AuthenticationError("Invalid token type")

    result = await db.execute(
        select(User).where(User.id == token_data.user_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning("User %s not found", token_data.user_id)
        raise AuthenticationError()

    logger.debug("Authenticated user: %s", user.email)
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Resolve the current user, refusing disabled accounts.

    Raises:
        AuthorizationError: If the account is disabled
    """
    if not current_user.is_active:
        logger.warning("Disabled account: %s", current_user.email)
        raise AuthorizationError("Account disabled")
    return current_user


def require_permission(resource: PermissionResource, action: PermissionAction):
    """
    Dependency factory checking one capability of the caller's role.

    Usage:
        @router.post("", dependencies=[Depends(require_permission(PermissionResource.QUOTES, PermissionAction.CREATE))])
    """

    async def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not current_user.has_permission(resource, action):
            logger.info(
                "User %s denied %s on %s",
                current_user.email,
                action.value,
                resource.value,
            )
            raise AuthorizationError(
                f"Permission '{action.value}' on '{resource.value}' is required",
                resource=resource.value,
                action=action.value,
            )
        return current_user

    return checker


# Type aliases for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_active_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
