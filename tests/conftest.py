"""
Pytest configuration and fixtures.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import quotebuilder.models  # noqa: F401 - register every table on the metadata
from quotebuilder.core.database import Base, get_db
from quotebuilder.core.security import get_password_hash
from quotebuilder.main import app
from quotebuilder.models.client import Client
from quotebuilder.models.product import Category, Product
from quotebuilder.models.role import PermissionResource, Role, RolePermission
from quotebuilder.models.user import User


# One in-memory SQLite database per test, shared by every session
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@example.com"
SALES_EMAIL = "sales@example.com"
PASSWORD = "testpassword123"


@dataclass
class Seed:
    """Ids of the records every test starts with."""
    admin_id: int
    sales_id: int
    admin_role_id: int
    sales_role_id: int
    client_id: int
    furniture_id: int
    lighting_id: int
    sofa_id: int
    lamp_id: int
    flooring_id: int
    retired_id: int


@pytest.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINT works on pysqlite
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_maker, seed) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests, opened after seeding."""
    async with session_maker() as session:
        yield session
        await session.rollback()


def _permissions(resource: PermissionResource, **flags) -> RolePermission:
    return RolePermission(resource=resource, **flags)


@pytest.fixture
async def seed(session_maker) -> Seed:
    """
    Seed roles, users, a client and a small catalog.

    Admin can do everything. Sales can draft, edit, send for approval and
    export quotes but cannot approve them nor skip approval.
    """
    everything = dict(
        can_create=True,
        can_read=True,
        can_edit=True,
        can_delete=True,
        can_approve=True,
        can_export=True,
        can_bypass_approval=True,
    )
    async with session_maker() as session:
        admin_role = Role(
            name="Admin",
            description="Full access",
            is_protected=True,
            permissions=[_permissions(resource, **everything) for resource in PermissionResource],
        )
        sales_role = Role(
            name="Sales",
            description="Builds quotes",
            permissions=[
                _permissions(PermissionResource.QUOTES, can_create=True, can_edit=True, can_export=True),
                _permissions(PermissionResource.PRODUCTS),
                _permissions(PermissionResource.CATEGORIES),
                _permissions(PermissionResource.CLIENTS, can_create=True),
            ],
        )
        admin = User(
            email=ADMIN_EMAIL,
            hashed_password=get_password_hash(PASSWORD),
            full_name="Admin User",
            role=admin_role,
            is_active=True,
        )
        sales = User(
            email=SALES_EMAIL,
            hashed_password=get_password_hash(PASSWORD),
            full_name="Sales User",
            role=sales_role,
            is_active=True,
        )
        furniture = Category(name="Furniture")
        lighting = Category(name="Lighting")
        sofa = Product(item_code="SOF-01", name="Sofa", category=furniture, base_rate=Decimal("1000.00"), unit="nos")
        lamp = Product(item_code="LMP-01", name="Floor lamp", category=lighting, base_rate=Decimal("250.00"), unit="nos")
        flooring = Product(item_code="FLR-01", name="Oak flooring", base_rate=Decimal("50.00"), unit="sqft", is_area_priced=True)
        retired = Product(item_code="OLD-01", name="Retired chair", category=furniture, base_rate=Decimal("80.00"), is_active=False)
        client = Client(name="Acme Interiors", email="buyer@acme.example.com", company="Acme")

        session.add_all([admin_role, sales_role, admin, sales, furniture, lighting, sofa, lamp, flooring, retired, client])
        await session.commit()

        return Seed(
            admin_id=admin.id,
            sales_id=sales.id,
            admin_role_id=admin_role.id,
            sales_role_id=sales_role.id,
            client_id=client.id,
            furniture_id=furniture.id,
            lighting_id=lighting.id,
            sofa_id=sofa.id,
            lamp_id=lamp.id,
            flooring_id=flooring.id,
            retired_id=retired.id,
        )


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client; every request gets its own session, like production."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    """Log in and return the Authorization header."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
async def admin_headers(client: AsyncClient, seed: Seed) -> dict:
    return await login(client, ADMIN_EMAIL)


@pytest.fixture
async def sales_headers(client: AsyncClient, seed: Seed) -> dict:
    return await login(client, SALES_EMAIL)


@pytest.fixture
async def admin(db_session: AsyncSession, seed: Seed) -> User:
    return await db_session.get(User, seed.admin_id)


@pytest.fixture
async def sales(db_session: AsyncSession, seed: Seed) -> User:
    return await db_session.get(User, seed.sales_id)
