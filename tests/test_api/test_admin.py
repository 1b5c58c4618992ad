"""Tests for the admin endpoints."""

import pytest
from httpx import AsyncClient


class TestAdminRegister:
    """Tests for POST /admin/books/{id}/register."""

    @pytest.mark.asyncio
    async def test_register_draft(self, client: AsyncClient, bands, seed_codes):
        await seed_codes("lgk001")
        draft = (await client.post("/books", json={"title": "Draft", "assign_barcode": False})).json()
        assert draft["barcode"] is None
        assert draft["reading_status"] == "in_stock"

        response = await client.post(f"/admin/books/{draft['id']}/register", json={"BBreite": 12, "BHoehe": 21})

        assert response.status_code == 200
        assert response.json()["barcode"] == "lgk001"

        again = await client.post(f"/admin/books/{draft['id']}/register", json={"width": 12, "height": 21})
        assert again.status_code == 409
        assert again.json()["error_type"] == "book_already_registered"


class TestAdminInventory:
    """Tests for the inventory summary, listing and release."""

    @pytest.mark.asyncio
    async def test_summary_and_listing(self, client: AsyncClient, bands, seed_codes):
        await seed_codes(("lgk001", 1), ("lgk002", 2), ("dgk001", 1))
        book = (await client.post("/books", json={"title": "Dune", "width": 12, "height": 21})).json()

        summary = (await client.get("/admin/barcodes/summary")).json()
        assert summary == {
            "total": 3,
            "available": 2,
            "assigned": 1,
            "other": 0,
            "open_assignments": 1,
            "assigned_without_open": 0,
            "open_without_assigned": 0,
        }

        listing = (await client.get("/admin/barcodes", params={"q": "lgk", "limit": 1})).json()
        assert listing["total_items"] == 2
        assert listing["pages"] == 2
        assert listing["items"][0]["code"] == "lgk001"
        assert listing["items"][0]["book_id"] == book["id"]
        assert listing["items"][0]["book_title"] == "Dune"

        available = (await client.get("/admin/barcodes", params={"status": "available"})).json()
        assert [item["code"] for item in available["items"]] == ["dgk001", "lgk002"]
        assert all(item["book_id"] is None for item in available["items"])

    @pytest.mark.asyncio
    async def test_admin_release_bypasses_ledger(self, client: AsyncClient, bands, seed_codes):
        await seed_codes("lgk001")
        await client.post("/books", json={"width": 12, "height": 21})

        response = await client.patch("/admin/barcodes/LGK001/release")

        assert response.status_code == 200
        assert response.json() == {"code": "lgk001", "status": "AVAILABLE"}

        summary = (await client.get("/admin/barcodes/summary")).json()
        assert summary["open_without_assigned"] == 1

    @pytest.mark.asyncio
    async def test_release_unknown(self, client: AsyncClient):
        response = await client.patch("/admin/barcodes/zzz001/release")
        assert response.status_code == 404
        assert response.json()["error_type"] == "not_in_pool"
