"""
Catalog, client, role and template endpoint tests.
"""

from decimal import Decimal
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_and_list_categories(client: AsyncClient, admin_headers, seed):
    response = await client.post(
        "/api/v1/categories",
        json={"name": "Desk lamps", "parentId": seed.lighting_id},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["parentId"] == seed.lighting_id

    response = await client.get("/api/v1/categories", headers=admin_headers)
    names = {c["name"] for c in response.json()}
    assert names == {"Furniture", "Lighting", "Desk lamps"}


@pytest.mark.asyncio
async def test_duplicate_category_name(client: AsyncClient, admin_headers, seed):
    response = await client.post("/api/v1/categories", json={"name": "Furniture"}, headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_category_cannot_be_its_own_parent(client: AsyncClient, admin_headers, seed):
    response = await client.patch(
        f"/api/v1/categories/{seed.furniture_id}",
        json={"parentId": seed.furniture_id},
        headers=admin_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_product(client: AsyncClient, admin_headers, seed):
    """Test product creation."""
    response = await client.post(
        "/api/v1/products",
        json={
            "itemCode": "TBL-01",
            "name": "Dining table",
            "categoryId": seed.furniture_id,
            "baseRate": "1200.00",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["categoryName"] == "Furniture"
    assert data["unit"] == "nos"
    assert Decimal(data["baseRate"]) == Decimal("1200")


@pytest.mark.asyncio
async def test_create_product_with_unknown_category(client: AsyncClient, admin_headers, seed):
    response = await client.post(
        "/api/v1/products",
        json={"name": "Stool", "categoryId": 9999, "baseRate": "40"},
        headers=admin_headers,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sales_cannot_create_products(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/products",
        json={"name": "Stool", "baseRate": "40"},
        headers=sales_headers,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "AuthorizationError"


@pytest.mark.asyncio
async def test_list_and_filter_products(client: AsyncClient, sales_headers, seed):
    response = await client.get("/api/v1/products", headers=sales_headers)
    assert response.json()["total"] == 4

    response = await client.get("/api/v1/products", params={"is_active": "true"}, headers=sales_headers)
    assert response.json()["total"] == 3

    response = await client.get(
        "/api/v1/products",
        params={"category_id": seed.furniture_id},
        headers=sales_headers,
    )
    assert {p["name"] for p in response.json()["items"]} == {"Sofa", "Retired chair"}

    response = await client.get("/api/v1/products", params={"search": "lamp"}, headers=sales_headers)
    assert [p["name"] for p in response.json()["items"]] == ["Floor lamp"]


@pytest.mark.asyncio
async def test_update_and_deactivate_product(client: AsyncClient, admin_headers, seed):
    url = f"/api/v1/products/{seed.lamp_id}"

    response = await client.patch(url, json={"baseRate": "275"}, headers=admin_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["baseRate"]) == Decimal("275")

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(url, headers=admin_headers)
    assert response.json()["isActive"] is False


@pytest.mark.asyncio
async def test_client_crud(client: AsyncClient, sales_headers, admin_headers, seed):
    response = await client.post(
        "/api/v1/clients",
        json={"name": "Globex", "email": "contact@globex.example.com", "company": "Globex Corp"},
        headers=sales_headers,
    )
    assert response.status_code == 201
    client_id = response.json()["id"]

    response = await client.get("/api/v1/clients", params={"search": "globex"}, headers=sales_headers)
    assert [c["name"] for c in response.json()["items"]] == ["Globex"]

    response = await client.patch(
        f"/api/v1/clients/{client_id}",
        json={"phone": "+1 555 0100"},
        headers=sales_headers,
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/v1/clients/{client_id}",
        json={"phone": "+1 555 0100"},
        headers=admin_headers,
    )
    assert response.json()["phone"] == "+1 555 0100"

    response = await client.delete(f"/api/v1/clients/{client_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/clients/{client_id}", headers=admin_headers)
    assert response.json()["isActive"] is False


@pytest.mark.asyncio
async def test_get_unknown_client(client: AsyncClient, admin_headers, seed):
    response = await client.get("/api/v1/clients/9999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


@pytest.mark.asyncio
async def test_create_role_and_replace_permissions(client: AsyncClient, admin_headers, seed):
    response = await client.post(
        "/api/v1/roles",
        json={
            "name": "Approver",
            "permissions": [{"resource": "quotes", "canApprove": True}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    role = response.json()
    assert role["permissions"][0]["canApprove"] is True
    assert role["permissions"][0]["canRead"] is True

    response = await client.put(
        f"/api/v1/roles/{role['id']}/permissions",
        json={"permissions": [
            {"resource": "quotes", "canApprove": True, "canBypassApproval": True},
            {"resource": "clients"},
        ]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    permissions = {p["resource"]: p for p in response.json()["permissions"]}
    assert permissions["quotes"]["canBypassApproval"] is True
    assert set(permissions) == {"quotes", "clients"}


@pytest.mark.asyncio
async def test_duplicate_permission_resources_are_rejected(client: AsyncClient, admin_headers, seed):
    response = await client.post(
        "/api/v1/roles",
        json={"name": "Broken", "permissions": [{"resource": "quotes"}, {"resource": "quotes"}]},
        headers=admin_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_protected_role_cannot_be_deleted(client: AsyncClient, admin_headers, seed):
    response = await client.delete(f"/api/v1/roles/{seed.admin_role_id}", headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deleting_role_unassigns_users(client: AsyncClient, admin_headers, seed):
    response = await client.delete(f"/api/v1/roles/{seed.sales_role_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/users", headers=admin_headers)
    sales = next(u for u in response.json() if u["id"] == seed.sales_id)
    assert sales["roleId"] is None


@pytest.mark.asyncio
async def test_assign_role(client: AsyncClient, admin_headers, sales_headers, seed):
    response = await client.put(
        f"/api/v1/users/{seed.sales_id}/role",
        json={"roleId": seed.admin_role_id},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["roleName"] == "Admin"

    # Permissions are read from the database on every request
    response = await client.get("/api/v1/roles", headers=sales_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_templates_single_default(client: AsyncClient, sales_headers, seed):
    first = await client.post(
        "/api/v1/templates",
        json={"name": "Classic", "isDefault": True},
        headers=sales_headers,
    )
    assert first.status_code == 201
    assert first.json()["config"]["accentColor"] == "#059669"

    second = await client.post(
        "/api/v1/templates",
        json={"name": "Modern", "config": {"accentColor": "#1D4ED8", "showCategoryBreakdown": True}},
        headers=sales_headers,
    )
    assert second.json()["isDefault"] is False

    response = await client.post(
        f"/api/v1/templates/{second.json()['id']}/set-default",
        headers=sales_headers,
    )
    assert response.status_code == 200
    assert response.json()["isDefault"] is True

    response = await client.get("/api/v1/templates", headers=sales_headers)
    defaults = [t["name"] for t in response.json() if t["isDefault"]]
    assert defaults == ["Modern"]


@pytest.mark.asyncio
async def test_invalid_template_color(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/templates",
        json={"name": "Loud", "config": {"accentColor": "red"}},
        headers=sales_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_template(client: AsyncClient, sales_headers, seed):
    created = await client.post("/api/v1/templates", json={"name": "Classic"}, headers=sales_headers)
    template_id = created.json()["id"]

    response = await client.patch(
        f"/api/v1/templates/{template_id}",
        json={"name": "Classic green", "config": {"accentColor": "#047857", "showPolicies": False}},
        headers=sales_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Classic green"
    assert data["config"]["accentColor"] == "#047857"
    assert data["config"]["showPolicies"] is False


@pytest.mark.asyncio
async def test_duplicate_template_is_never_default(client: AsyncClient, sales_headers, seed):
    created = await client.post(
        "/api/v1/templates",
        json={"name": "Classic", "isDefault": True, "config": {"accentColor": "#1D4ED8"}},
        headers=sales_headers,
    )

    response = await client.post(
        f"/api/v1/templates/{created.json()['id']}/duplicate",
        headers=sales_headers,
    )

    assert response.status_code == 201
    copy = response.json()
    assert copy["name"] == "Classic (Copy)"
    assert copy["isDefault"] is False
    assert copy["config"]["accentColor"] == "#1D4ED8"

    response = await client.post(
        f"/api/v1/templates/{created.json()['id']}/duplicate",
        json={"name": "Classic for export"},
        headers=sales_headers,
    )
    assert response.json()["name"] == "Classic for export"


@pytest.mark.asyncio
async def test_delete_template(client: AsyncClient, sales_headers, seed):
    default = await client.post(
        "/api/v1/templates",
        json={"name": "Classic", "isDefault": True},
        headers=sales_headers,
    )
    other = await client.post("/api/v1/templates", json={"name": "Modern"}, headers=sales_headers)

    response = await client.delete(f"/api/v1/templates/{default.json()['id']}", headers=sales_headers)
    assert response.status_code == 422

    response = await client.delete(f"/api/v1/templates/{other.json()['id']}", headers=sales_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/templates", headers=sales_headers)
    assert [t["name"] for t in response.json()] == ["Classic"]

    response = await client.delete(f"/api/v1/templates/{other.json()['id']}", headers=sales_headers)
    assert response.status_code == 404
