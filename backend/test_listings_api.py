"""
backend/test_listings_api.py

Listing CRUD, owner scoping and RBAC.

Run:
    pytest backend/test_listings_api.py -v
"""

import pytest

from backend import listings


PAYLOAD = {
    "title": "Garden Cottage",
    "address": "4 Elm Lane",
    "description": "One bedroom with a garden",
    "price": 950.0,
    "amenities": [" WiFi ", "Garden", "WiFi", ""],
    "images": ["https://img.example.com/1.jpg"],
}


class TestCreateAndFetch:
    def test_round_trip(self, client, admin):
        created = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"])
        assert created.status_code == 201, created.text
        listing_id = created.json()["id"]

        got = client.get(f"/api/listings/{listing_id}", headers=admin["headers"]).json()
        assert got["title"] == "Garden Cottage"
        assert got["address"] == "4 Elm Lane"
        assert got["price"] == 950.0
        assert set(got["amenities"]) == {"WiFi", "Garden"}
        assert got["amenities"] == sorted(got["amenities"])
        assert got["images"] == ["https://img.example.com/1.jpg"]
        assert got["status"] == "Available"
        assert got["owner_id"] == admin["id"]

    def test_non_positive_price_rejected(self, client, admin):
        resp = client.post("/api/listings", json={**PAYLOAD, "price": 0}, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    @pytest.mark.parametrize("price", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_price_rejected(self, client, admin, price):
        resp = client.post("/api/listings", json={**PAYLOAD, "price": price}, headers=admin["headers"])
        assert resp.status_code == 400, resp.text
        assert resp.json()["error"] == "validation_error"
        assert client.get("/api/listings", headers=admin["headers"]).json()["total"] == 0

    def test_blank_title_rejected(self, client, admin):
        resp = client.post("/api/listings", json={**PAYLOAD, "title": "   "}, headers=admin["headers"])
        assert resp.status_code == 400

    def test_missing_field_rejected(self, client, admin):
        body = {k: v for k, v in PAYLOAD.items() if k != "address"}
        resp = client.post("/api/listings", json=body, headers=admin["headers"])
        assert resp.status_code == 422

    def test_requires_auth(self, client):
        resp = client.post("/api/listings", json=PAYLOAD)
        assert resp.status_code in (401, 403)

    def test_tenant_cannot_create(self, client, tenant):
        resp = client.post("/api/listings", json=PAYLOAD, headers=tenant["headers"])
        assert resp.status_code == 403


class TestUpdateAndDelete:
    def test_partial_update_only_touches_given_fields(self, client, admin):
        listing = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"]).json()
        resp = client.patch(
            f"/api/listings/{listing['id']}",
            json={"price": 1100, "amenities": []},
            headers=admin["headers"],
        )
        assert resp.status_code == 200, resp.text
        updated = resp.json()
        assert updated["price"] == 1100
        assert updated["amenities"] == []
        assert updated["title"] == listing["title"]
        assert updated["images"] == listing["images"]

    @pytest.mark.parametrize("price", ["NaN", "Infinity"])
    def test_update_rejects_non_finite_price(self, client, admin, price):
        listing = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"]).json()
        resp = client.patch(f"/api/listings/{listing['id']}", json={"price": price}, headers=admin["headers"])
        assert resp.status_code == 400, resp.text
        got = client.get(f"/api/listings/{listing['id']}", headers=admin["headers"]).json()
        assert got["price"] == 950.0

    def test_invalid_status_rejected(self, client, admin):
        listing = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"]).json()
        resp = client.patch(f"/api/listings/{listing['id']}", json={"status": "Vacant"}, headers=admin["headers"])
        assert resp.status_code == 422

    def test_delete(self, client, admin):
        listing = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"]).json()
        assert client.delete(f"/api/listings/{listing['id']}", headers=admin["headers"]).status_code == 200
        assert client.get(f"/api/listings/{listing['id']}", headers=admin["headers"]).status_code == 404

    def test_delete_with_lease_conflicts(self, client, admin, booking):
        client.post("/api/leases", json={"booking_id": booking["id"]}, headers=admin["headers"])
        resp = client.delete(f"/api/listings/{booking['listing_id']}", headers=admin["headers"])
        assert resp.status_code == 409


class TestScoping:
    def test_other_admin_sees_404(self, client, admin, other_admin):
        listing = client.post("/api/listings", json=PAYLOAD, headers=admin["headers"]).json()
        assert client.get(f"/api/listings/{listing['id']}", headers=other_admin["headers"]).status_code == 404
        assert client.get("/api/listings", headers=other_admin["headers"]).json()["total"] == 0

    def test_tenant_browses_available_only(self, client, admin, tenant):
        client.post("/api/listings", json=PAYLOAD, headers=admin["headers"])
        client.post("/api/listings", json={**PAYLOAD, "title": "Closed", "status": "Unavailable"},
                    headers=admin["headers"])
        resp = client.get("/api/listings/available", headers=tenant["headers"])
        assert resp.status_code == 200
        titles = [i["title"] for i in resp.json()["items"]]
        assert titles == ["Garden Cottage"]


class TestCounts:
    def test_status_counts(self, client, admin):
        client.post("/api/listings", json=PAYLOAD, headers=admin["headers"])
        client.post("/api/listings", json={**PAYLOAD, "status": "Unavailable"}, headers=admin["headers"])
        counts = client.get("/api/listings/status-counts", headers=admin["headers"]).json()
        assert counts["Available"] == 1
        assert counts["Unavailable"] == 1
        assert counts["Rented"] == 0
        assert counts["total"] == 2
        assert counts["added_this_month"] == 2

    def test_filter_by_status(self, client, admin):
        client.post("/api/listings", json=PAYLOAD, headers=admin["headers"])
        client.post("/api/listings", json={**PAYLOAD, "status": "Unavailable"}, headers=admin["headers"])
        resp = client.get("/api/listings", params={"status": "Unavailable"}, headers=admin["headers"])
        assert resp.json()["total"] == 1


def test_normalize_amenities():
    assert listings.normalize_amenities([" Pool", "Gym ", "Pool", "", "  "]) == ["Gym", "Pool"]
    assert listings.normalize_amenities(None) == []
    assert listings.normalize_amenities("Sauna") == ["Sauna"]
