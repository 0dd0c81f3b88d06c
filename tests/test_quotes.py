"""
Quote endpoint tests.
"""

from decimal import Decimal
import pytest
from httpx import AsyncClient


def quote_payload(seed, **overrides) -> dict:
    payload = {
        "title": "Living room",
        "clientId": seed.client_id,
        "discountMode": "LINE_ITEM",
        "taxRatePercent": "18",
        "items": [
            {"productId": seed.sofa_id, "quantity": "10", "rate": "100", "discountPercent": "10"},
        ],
        "policies": [
            {"type": "WARRANTY", "title": "One year warranty", "description": "Manufacturing defects"},
        ],
    }
    payload.update(overrides)
    return payload


async def create_quote(client: AsyncClient, headers: dict, seed, **overrides) -> dict:
    response = await client.post("/api/v1/quotes", json=quote_payload(seed, **overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_quote(client: AsyncClient, sales_headers, seed):
    """Test quote creation with stored totals."""
    data = await create_quote(client, sales_headers, seed)

    assert data["status"] == "DRAFT"
    assert data["version"] == 1
    assert data["quoteNumber"].startswith("QT-")
    assert Decimal(data["subtotal"]) == Decimal("900")
    assert Decimal(data["discountAmount"]) == Decimal("100")
    assert Decimal(data["taxAmount"]) == Decimal("162")
    assert Decimal(data["grandTotal"]) == Decimal("1062")
    assert data["items"][0]["unit"] == "nos"
    assert data["items"][0]["categoryName"] == "Furniture"
    assert data["policies"][0]["type"] == "WARRANTY"


@pytest.mark.asyncio
async def test_create_quote_requires_title(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes",
        json=quote_payload(seed, title="   "),
        headers=sales_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_create_quote_requires_items(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes",
        json=quote_payload(seed, items=[]),
        headers=sales_headers,
    )

    assert response.status_code == 422
    assert response.json()["message"] == "A quote needs at least one item"


@pytest.mark.asyncio
async def test_create_quote_with_unknown_product(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes",
        json=quote_payload(seed, items=[{"productId": 9999, "quantity": "1"}]),
        headers=sales_headers,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


@pytest.mark.asyncio
async def test_preview_does_not_persist(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes/preview",
        json={
            "discountMode": "OVERALL",
            "overallDiscountPercent": "20",
            "items": [
                {"productId": seed.sofa_id, "quantity": "10", "rate": "100", "discountPercent": "10"},
                {"productId": seed.flooring_id, "quantity": "1", "dimensions": {"length": "4", "width": "4"}},
            ],
        },
        headers=sales_headers,
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert Decimal(data["totals"]["subtotal"]) == Decimal("1800")
    assert Decimal(data["totals"]["grandTotal"]) == Decimal("1699.20")
    assert Decimal(data["lines"][1]["quantity"]) == Decimal("16")
    assert [c["categoryName"] for c in data["categories"]] == ["Furniture", "Uncategorized"]

    listing = await client.get("/api/v1/quotes", headers=sales_headers)
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_preview_with_huge_numbers_saturates(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes/preview",
        json={"items": [{"productId": seed.sofa_id, "quantity": "1e30", "rate": "1e30"}]},
        headers=sales_headers,
    )

    assert response.status_code == 200, response.text
    totals = response.json()["totals"]
    assert Decimal(totals["subtotal"]) == Decimal("9999999999.99")
    assert Decimal(totals["grandTotal"]) == Decimal("9999999999.99")


@pytest.mark.asyncio
async def test_create_rejects_amounts_beyond_storage(client: AsyncClient, sales_headers, seed):
    response = await client.post(
        "/api/v1/quotes",
        json=quote_payload(seed, items=[{"productId": seed.sofa_id, "quantity": "100000000", "rate": "1000"}]),
        headers=sales_headers,
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["details"]["max_amount"] == "9999999999.99"

    response = await client.post(
        "/api/v1/quotes",
        json=quote_payload(seed, items=[{"productId": seed.sofa_id, "quantity": "1e30"}]),
        headers=sales_headers,
    )
    assert response.status_code == 422

    listing = await client.get("/api/v1/quotes", headers=sales_headers)
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_update_rejects_amounts_beyond_storage(client: AsyncClient, sales_headers, seed):
    quote = await create_quote(client, sales_headers, seed)

    response = await client.put(
        f"/api/v1/quotes/{quote['id']}",
        json={"items": [{"productId": seed.sofa_id, "quantity": "999999", "rate": "99999"}]},
        headers=sales_headers,
    )

    assert response.status_code == 422
    response = await client.get(f"/api/v1/quotes/{quote['id']}", headers=sales_headers)
    assert response.json()["version"] == 1


@pytest.mark.asyncio
async def test_new_quote_gets_default_terms(client: AsyncClient, sales_headers, seed):
    payload = quote_payload(seed)
    del payload["policies"]

    response = await client.post("/api/v1/quotes", json=payload, headers=sales_headers)

    assert response.status_code == 201
    titles = [p["title"] for p in response.json()["policies"]]
    assert titles[0] == "All sales are final"
    assert "Quotation validity" in titles

    data = await create_quote(client, sales_headers, seed, policies=[])
    assert data["policies"] == []


@pytest.mark.asyncio
async def test_approval_workflow(client: AsyncClient, sales_headers, admin_headers, seed):
    """Draft, request approval, approve (which sends), accept."""
    quote = await create_quote(client, sales_headers, seed)
    quote_id = quote["id"]

    response = await client.post(f"/api/v1/quotes/{quote_id}/request-approval", headers=sales_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING_APPROVAL"
    assert response.json()["approvalRequestedAt"] is not None

    response = await client.post(f"/api/v1/quotes/{quote_id}/approve", headers=sales_headers)
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/quotes/{quote_id}/approve",
        json={"notes": "Margins are fine"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "SENT"
    assert data["isApproved"] is True
    assert data["approvedById"] == seed.admin_id
    assert data["approvalNotes"] == "Margins are fine"
    assert data["sentAt"] is not None

    response = await client.post(f"/api/v1/quotes/{quote_id}/accept", headers=sales_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "ACCEPTED"
    assert response.json()["acceptedAt"] is not None


@pytest.mark.asyncio
async def test_reject_and_revise(client: AsyncClient, sales_headers, admin_headers, seed):
    quote = await create_quote(client, sales_headers, seed)
    quote_id = quote["id"]
    await client.post(f"/api/v1/quotes/{quote_id}/request-approval", headers=sales_headers)

    response = await client.post(
        f"/api/v1/quotes/{quote_id}/reject",
        json={"notes": "Discount too high"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "REJECTED"
    assert response.json()["isApproved"] is False

    response = await client.post(f"/api/v1/quotes/{quote_id}/revise", headers=sales_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "DRAFT"
    assert response.json()["approvalNotes"] is None


@pytest.mark.asyncio
async def test_send_draft_requires_approval_or_bypass(client: AsyncClient, sales_headers, admin_headers, seed):
    quote = await create_quote(client, sales_headers, seed)

    response = await client.post(f"/api/v1/quotes/{quote['id']}/send", headers=sales_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "AuthorizationError"

    response = await client.post(f"/api/v1/quotes/{quote['id']}/send", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "SENT"
    assert response.json()["isApproved"] is False

    # Sending again changes nothing
    again = await client.post(f"/api/v1/quotes/{quote['id']}/send", headers=admin_headers)
    assert again.status_code == 200
    assert again.json()["sentAt"] == response.json()["sentAt"]


@pytest.mark.asyncio
async def test_request_approval_on_sent_quote_is_illegal(client: AsyncClient, sales_headers, admin_headers, seed):
    quote = await create_quote(client, sales_headers, seed)
    await client.post(f"/api/v1/quotes/{quote['id']}/send", headers=admin_headers)

    response = await client.post(f"/api/v1/quotes/{quote['id']}/request-approval", headers=sales_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "IllegalTransitionError"
    assert body["statusCode"] == 409
    assert body["details"]["current_status"] == "SENT"

    current = await client.get(f"/api/v1/quotes/{quote['id']}", headers=sales_headers)
    assert current.json()["status"] == "SENT"


@pytest.mark.asyncio
async def test_update_with_stale_version_conflicts(client: AsyncClient, sales_headers, seed):
    quote = await create_quote(client, sales_headers, seed)
    url = f"/api/v1/quotes/{quote['id']}"

    first = await client.put(url, json={"title": "Lounge", "expectedVersion": 1}, headers=sales_headers)
    assert first.status_code == 200
    assert first.json()["version"] == 2

    second = await client.put(url, json={"title": "Den", "expectedVersion": 1}, headers=sales_headers)
    assert second.status_code == 409
    assert second.json()["error"] == "ConflictError"

    current = await client.get(url, headers=sales_headers)
    assert current.json()["title"] == "Lounge"


@pytest.mark.asyncio
async def test_update_reprices_and_records_revision(client: AsyncClient, sales_headers, seed):
    quote = await create_quote(client, sales_headers, seed)
    url = f"/api/v1/quotes/{quote['id']}"

    response = await client.put(
        url,
        json={"discountMode": "OVERALL", "overallDiscountPercent": "20"},
        headers=sales_headers,
    )
    assert response.status_code == 200
    assert Decimal(response.json()["grandTotal"]) == Decimal("944")

    revisions = await client.get(f"{url}/revisions", headers=sales_headers)
    assert revisions.status_code == 200
    entries = revisions.json()
    assert len(entries) == 1
    assert entries[0]["version"] == 1
    assert entries[0]["changedById"] == seed.sales_id
    assert Decimal(entries[0]["snapshot"]["grandTotal"]) == Decimal("1062")


@pytest.mark.asyncio
async def test_breakdown_endpoint(client: AsyncClient, sales_headers, seed):
    quote = await create_quote(
        client,
        sales_headers,
        seed,
        items=[
            {"productId": seed.sofa_id, "quantity": "1"},
            {"productId": seed.lamp_id, "quantity": "2"},
        ],
    )

    response = await client.get(f"/api/v1/quotes/{quote['id']}/breakdown", headers=sales_headers)

    assert response.status_code == 200
    rows = response.json()
    assert [(r["categoryName"], Decimal(r["total"])) for r in rows] == [
        ("Furniture", Decimal("1000")),
        ("Lighting", Decimal("500")),
    ]
    assert sum(Decimal(r["total"]) for r in rows) == Decimal(quote["subtotal"])


@pytest.mark.asyncio
async def test_delete_only_draft(client: AsyncClient, admin_headers, seed):
    draft = await create_quote(client, admin_headers, seed)
    sent = await create_quote(client, admin_headers, seed)
    await client.post(f"/api/v1/quotes/{sent['id']}/send", headers=admin_headers)

    response = await client.delete(f"/api/v1/quotes/{sent['id']}", headers=admin_headers)
    assert response.status_code == 409

    response = await client.delete(f"/api/v1/quotes/{draft['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/quotes/{draft['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sales_cannot_delete(client: AsyncClient, sales_headers, seed):
    quote = await create_quote(client, sales_headers, seed)

    response = await client.delete(f"/api/v1/quotes/{quote['id']}", headers=sales_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_and_filter_quotes(client: AsyncClient, sales_headers, admin_headers, seed):
    first = await create_quote(client, sales_headers, seed, title="Kitchen")
    await create_quote(client, sales_headers, seed, title="Bedroom")
    await client.post(f"/api/v1/quotes/{first['id']}/send", headers=admin_headers)

    response = await client.get("/api/v1/quotes", headers=sales_headers)
    assert response.json()["total"] == 2

    response = await client.get("/api/v1/quotes", params={"status": "SENT"}, headers=sales_headers)
    assert [q["title"] for q in response.json()["items"]] == ["Kitchen"]

    response = await client.get("/api/v1/quotes", params={"search": "bed"}, headers=sales_headers)
    assert [q["title"] for q in response.json()["items"]] == ["Bedroom"]


@pytest.mark.asyncio
async def test_quote_stats(client: AsyncClient, sales_headers, admin_headers, seed):
    accepted = await create_quote(client, sales_headers, seed)
    await create_quote(client, sales_headers, seed)
    await client.post(f"/api/v1/quotes/{accepted['id']}/send", headers=admin_headers)
    await client.post(f"/api/v1/quotes/{accepted['id']}/accept", headers=admin_headers)

    response = await client.get("/api/v1/quotes/stats", headers=sales_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["statusCounts"]["ACCEPTED"] == 1
    assert data["statusCounts"]["DRAFT"] == 1
    assert Decimal(data["totalAcceptedValue"]) == Decimal("1062")
    assert data["acceptanceRate"] == 100.0


@pytest.mark.asyncio
async def test_pdf_export(client: AsyncClient, sales_headers, seed, tmp_path, monkeypatch):
    from quotebuilder.core.config import settings

    monkeypatch.setattr(settings, "PDF_STORAGE_PATH", str(tmp_path))
    quote = await create_quote(client, sales_headers, seed)

    response = await client.get(f"/api/v1/quotes/{quote['id']}/pdf", headers=sales_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_quotes_require_authentication(client: AsyncClient, seed):
    response = await client.get("/api/v1/quotes")

    assert response.status_code == 401
    assert response.json()["error"] == "AuthenticationError"
