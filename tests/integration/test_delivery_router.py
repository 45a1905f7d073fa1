"""Integration tests for the delivery log router."""

import pytest


@pytest.fixture
async def sent(client, super_admin_headers, admin_headers):
    await client.post("/tenants", json={"slug": "acme", "business_name": "Acme"}, headers=super_admin_headers)
    await client.post("/tenants", json={"slug": "blue-cafe"}, headers=super_admin_headers)
    for number in ("INV-2024-001", "INV-2024-002"):
        await client.post(
            "/documents",
            json={"tenant": "acme", "number": number, "total": 10, "client": {"email": "a@b.test"}},
            headers=admin_headers,
        )
        resp = await client.post(
            "/documents/send",
            json={"tenant": "acme", "document_number": number},
            headers=admin_headers,
        )
        assert resp.status_code == 200


class TestDeliveryRouter:
    async def test_requires_api_key(self, client):
        resp = await client.get("/deliveries", params={"tenant": "acme"})
        assert resp.status_code == 422

    async def test_lists_entries(self, client, sent, admin_headers):
        resp = await client.get("/deliveries", params={"tenant": "acme"}, headers=admin_headers)
        assert resp.status_code == 200
        entries = resp.json()
        assert len(entries) == 2
        assert {e["document_number"] for e in entries} == {"INV-2024-001", "INV-2024-002"}
        assert all(e["status"] == "sent" and e["kind"] == "invoice" for e in entries)

    async def test_limit(self, client, sent, admin_headers):
        resp = await client.get("/deliveries", params={"tenant": "acme", "limit": 1}, headers=admin_headers)
        assert len(resp.json()) == 1

    async def test_scoped_to_tenant(self, client, sent, admin_headers):
        resp = await client.get("/deliveries", params={"tenant": "blue-cafe"}, headers=admin_headers)
        assert resp.json() == []

    async def test_unknown_tenant(self, client, admin_headers):
        resp = await client.get("/deliveries", params={"tenant": "ghost"}, headers=admin_headers)
        assert resp.status_code == 404
