"""
Authentication endpoints.
Login, register, refresh token.
"""

from fastapi import APIRouter, status

from quotebuilder.api.deps import DbSession, CurrentUser
from quotebuilder.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenPair,
    RefreshTokenRequest,
)
from quotebuilder.schemas.user import UserResponse
from quotebuilder.services.auth import AuthService


router = APIRouter()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a new user account with the default role",
)
async def register(
    data: RegisterRequest,
    db: DbSession,
) -> UserResponse:
    """Register a new user."""
    service = AuthService(db)
    user = await service.register(data)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Log in with email and password",
)
async def login(
    data: LoginRequest,
    db: DbSession,
) -> TokenPair:
    """Log in and obtain a JWT pair."""
    service = AuthService(db)
    _, tokens = await service.login(data)
    return tokens


@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh token",
    description="Obtain a new token pair from a refresh token",
)
async def refresh_token(
    data: RefreshTokenRequest,
    db: DbSession,
) -> TokenPair:
    """Refresh the JWT pair."""
    service = AuthService(db)
    tokens = await service.refresh_token(data.refresh_token)
    return tokens


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current profile",
    description="Get the logged-in user",
)
async def get_current_user(
    current_user: CurrentUser,
) -> UserResponse:
    """Return the logged-in user's profile."""
    return UserResponse.model_validate(current_user)
