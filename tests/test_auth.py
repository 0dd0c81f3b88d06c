"""
Authentication endpoint tests.
"""

import pytest
from httpx import AsyncClient

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "testpassword123"


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, seed):
    """Test user registration."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "newuser@example.com",
            "password": "password123",
            "fullName": "New User",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "newuser@example.com"
    assert data["fullName"] == "New User"
    assert data["roleName"] == "Sales"
    assert "hashedPassword" not in data


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, seed):
    """Test registration with duplicate email."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": ADMIN_EMAIL,
            "password": "password123",
            "fullName": "Another User",
        },
    )

    assert response.status_code == 409
    assert response.json()["error"] == "ConflictError"


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient, seed):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "short@example.com", "password": "abc", "fullName": "Short"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, seed):
    """Test successful login."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": ADMIN_EMAIL, "password": PASSWORD},
    )

    assert response.status_code == 200
    data = response.json()
    assert "accessToken" in data
    assert "refreshToken" in data
    assert data["tokenType"] == "bearer"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, seed):
    """Test login with wrong password."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": ADMIN_EMAIL, "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "AuthenticationError"


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient, seed):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, admin_headers, seed):
    """Test getting current user profile."""
    response = await client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == seed.admin_id
    assert data["roleName"] == "Admin"


@pytest.mark.asyncio
async def test_get_current_user_no_token(client: AsyncClient):
    """Test getting current user without token."""
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_bad_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, seed):
    login_response = await client.post(
        "/api/v1/auth/login",
        json={"email": ADMIN_EMAIL, "password": PASSWORD},
    )
    refresh = login_response.json()["refreshToken"]

    response = await client.post("/api/v1/auth/refresh", json={"refreshToken": refresh})

    assert response.status_code == 200
    assert "accessToken" in response.json()
    assert response.json()["tokenType"] == "bearer"

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {response.json()['accessToken']}"},
    )
    assert me.status_code == 200
    assert me.json()["email"] == ADMIN_EMAIL


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(client: AsyncClient, admin_headers, seed):
    access = admin_headers["Authorization"].removeprefix("Bearer ")

    response = await client.post("/api/v1/auth/refresh", json={"refreshToken": access})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/users/me/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "brandnewpass1"},
        headers=sales_headers,
    )
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "sales@example.com", "password": "brandnewpass1"},
    )
    assert response.status_code == 200
