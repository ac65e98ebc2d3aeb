"""
backend/test_reviews_api.py

Tenant reviews and the owner's review feed.

Run:
    pytest backend/test_reviews_api.py -v
"""

import pytest

from backend import reviews
from backend.errors import ValidationError


def post_review(client, tenant, listing_id, rating=5, comment="Lovely place"):
    return client.post(
        "/api/reviews",
        json={"listing_id": listing_id, "rating": rating, "comment": comment},
        headers=tenant["headers"],
    )


class TestCreateReview:
    def test_tenant_with_booking_reviews(self, client, tenant, booking):
        resp = post_review(client, tenant, booking["listing_id"], comment="  Quiet street  ")
        assert resp.status_code == 201, resp.text
        review = resp.json()
        assert review["rating"] == 5
        assert review["comment"] == "Quiet street"
        assert review["tenant_name"] == "Tom Tenant"
        assert review["listing_title"] == "Sunny 2BR"

    def test_without_stay_rejected(self, client, tenant, listing):
        resp = post_review(client, tenant, listing["id"])
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_one_review_per_listing(self, client, tenant, booking):
        post_review(client, tenant, booking["listing_id"])
        assert post_review(client, tenant, booking["listing_id"], rating=1).status_code == 409

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, client, tenant, booking, rating):
        assert post_review(client, tenant, booking["listing_id"], rating=rating).status_code == 422

    def test_unknown_listing(self, client, tenant):
        assert post_review(client, tenant, 9999).status_code == 404

    def test_admin_cannot_review(self, client, admin, listing):
        assert post_review(client, admin, listing["id"]).status_code == 403


class TestReviewFeed:
    def test_feed_with_average(self, client, admin, tenant, other_tenant, listing, booking, future):
        client.post(
            "/api/bookings",
            json={"listing_id": listing["id"], "check_in": future(200), "check_out": future(230)},
            headers=other_tenant["headers"],
        )
        post_review(client, tenant, listing["id"], rating=5)
        post_review(client, other_tenant, listing["id"], rating=2, comment="Noisy")

        feed = client.get("/api/reviews", headers=admin["headers"]).json()
        assert feed["total"] == 2
        assert feed["average_rating"] == 3.5
        assert {r["tenant_name"] for r in feed["items"]} == {"Tom Tenant", "Tina Traveller"}

    def test_feed_is_owner_scoped(self, client, admin, other_admin, tenant, booking):
        post_review(client, tenant, booking["listing_id"])
        empty = client.get("/api/reviews", headers=other_admin["headers"]).json()
        assert empty == {"items": [], "total": 0, "average_rating": None}

    def test_filter_by_listing(self, client, admin, tenant, booking):
        post_review(client, tenant, booking["listing_id"])
        attic = {"title": "Attic", "address": "3 Loft Row", "description": "Top floor", "price": 700}
        other = client.post("/api/listings", json=attic, headers=admin["headers"]).json()
        resp = client.get("/api/reviews", params={"listing_id": other["id"]}, headers=admin["headers"])
        assert resp.json()["total"] == 0

    def test_tenant_cannot_read_feed(self, client, tenant):
        assert client.get("/api/reviews", headers=tenant["headers"]).status_code == 403


def test_service_rating_bounds(conn, tenant, booking):
    with pytest.raises(ValidationError):
        reviews.create_review(conn, tenant["id"], booking["listing_id"], 7)
    with pytest.raises(ValidationError):
        reviews.create_review(conn, tenant["id"], booking["listing_id"], "great")
