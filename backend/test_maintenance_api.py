"""
backend/test_maintenance_api.py

Maintenance requests: tenant filing rules, admin triage, caretakers and counters.

Run:
    pytest backend/test_maintenance_api.py -v
"""

import sqlite3

import pytest

from backend.db import ensure_column, get_table_columns
from backend.errors import InvalidTransitionError
from backend.status_rules import check_maintenance_transition


def file_request(client, tenant, listing_id, **extra):
    body = {"listing_id": listing_id, "issue": "Leaking tap", "description": "Kitchen sink", **extra}
    return client.post("/api/maintenance", json=body, headers=tenant["headers"])


class TestFiling:
    def test_tenant_with_booking_can_file(self, client, tenant, booking):
        resp = file_request(client, tenant, booking["listing_id"], priority="High")
        assert resp.status_code == 201, resp.text
        item = resp.json()
        assert item["status"] == "Pending"
        assert item["priority"] == "High"
        assert item["caretaker"] is None

    def test_tenant_without_stay_rejected(self, client, tenant, listing):
        resp = file_request(client, tenant, listing["id"])
        assert resp.status_code == 400

    def test_unknown_listing(self, client, tenant):
        assert file_request(client, tenant, 9999).status_code == 404

    def test_admin_cannot_file(self, client, admin, listing):
        assert file_request(client, admin, listing["id"]).status_code == 403

    def test_bad_priority(self, client, tenant, booking):
        assert file_request(client, tenant, booking["listing_id"], priority="Whenever").status_code == 422


class TestTriage:
    def test_admin_assigns_and_progresses(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()

        resp = client.patch(
            f"/api/maintenance/{item['id']}",
            json={"status": "In Progress", "caretaker": "Sam Fixit"},
            headers=admin["headers"],
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "In Progress"
        assert resp.json()["caretaker"] == "Sam Fixit"

        done = client.patch(f"/api/maintenance/{item['id']}", json={"status": "Completed"}, headers=admin["headers"])
        assert done.json()["status"] == "Completed"

        reopen = client.patch(f"/api/maintenance/{item['id']}", json={"status": "Pending"}, headers=admin["headers"])
        assert reopen.status_code == 409

    def test_same_status_is_a_no_op(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        moved = client.patch(
            f"/api/maintenance/{item['id']}", json={"status": "In Progress"}, headers=admin["headers"]
        ).json()
        feed_before = client.get("/api/activity", params={"limit": 50}, headers=admin["headers"]).json()["items"]

        again = client.patch(
            f"/api/maintenance/{item['id']}",
            json={"status": "In Progress", "priority": moved["priority"]},
            headers=admin["headers"],
        )
        assert again.status_code == 200
        assert again.json()["updated_at"] == moved["updated_at"]
        feed_after = client.get("/api/activity", params={"limit": 50}, headers=admin["headers"]).json()["items"]
        assert feed_after == feed_before

    def test_pending_cannot_jump_to_completed(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        resp = client.patch(f"/api/maintenance/{item['id']}", json={"status": "Completed"}, headers=admin["headers"])
        assert resp.status_code == 409

    def test_listing_scoped(self, client, admin, other_admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        assert client.get("/api/maintenance", headers=admin["headers"]).json()["total"] == 1
        assert client.get("/api/maintenance", headers=tenant["headers"]).json()["total"] == 1
        assert client.get("/api/maintenance", headers=other_admin["headers"]).json()["total"] == 0
        resp = client.patch(f"/api/maintenance/{item['id']}", json={"priority": "Low"}, headers=other_admin["headers"])
        assert resp.status_code == 404

    def test_status_filter(self, client, admin, tenant, booking):
        file_request(client, tenant, booking["listing_id"])
        resp = client.get("/api/maintenance", params={"status": "Completed"}, headers=admin["headers"])
        assert resp.json()["total"] == 0


def test_transition_rules():
    check_maintenance_transition("Pending", "In Progress")
    check_maintenance_transition("In Progress", "Cancelled")
    check_maintenance_transition("Completed", "Completed")
    with pytest.raises(InvalidTransitionError):
        check_maintenance_transition("Cancelled", "In Progress")


CARETAKER = {
    "first_name": "Sam",
    "surname": "Fixit",
    "email": "Sam@Fixit.example.com",
    "phone_number": "+44 20 7946 0958",
    "profession": "Plumber",
}


def add_caretaker(client, admin, **overrides):
    return client.post("/api/maintenance/caretakers", json={**CARETAKER, **overrides}, headers=admin["headers"])


class TestCaretakers:
    def test_create_and_list(self, client, admin):
        resp = add_caretaker(client, admin)
        assert resp.status_code == 201, resp.text
        caretaker = resp.json()
        assert caretaker["email"] == "sam@fixit.example.com"
        assert caretaker["open_requests"] == 0

        listed = client.get("/api/maintenance/caretakers", headers=admin["headers"]).json()
        assert listed["total"] == 1
        assert client.get(f"/api/maintenance/caretakers/{caretaker['id']}", headers=admin["headers"]).status_code == 200

    @pytest.mark.parametrize(
        "overrides",
        [{"email": "not-an-email"}, {"phone_number": "12"}, {"phone_number": "call me"}, {"profession": "  "}],
    )
    def test_invalid_fields_rejected(self, client, admin, overrides):
        resp = add_caretaker(client, admin, **overrides)
        assert resp.status_code == 400, resp.text
        assert resp.json()["error"] == "validation_error"

    def test_duplicate_email_conflicts(self, client, admin, other_admin):
        add_caretaker(client, admin)
        assert add_caretaker(client, admin, email="sam@fixit.example.com").status_code == 409
        # rosters are per admin
        assert add_caretaker(client, other_admin).status_code == 201

    def test_roster_is_admin_scoped(self, client, admin, other_admin, tenant):
        caretaker = add_caretaker(client, admin).json()
        assert client.get("/api/maintenance/caretakers", headers=other_admin["headers"]).json()["total"] == 0
        assert client.delete(
            f"/api/maintenance/caretakers/{caretaker['id']}", headers=other_admin["headers"]
        ).status_code == 404
        assert client.get("/api/maintenance/caretakers", headers=tenant["headers"]).status_code == 403


class TestAssignment:
    def test_assign_sets_caretaker(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        caretaker = add_caretaker(client, admin).json()

        resp = client.post(
            "/api/maintenance/assign",
            json={"caretaker_id": caretaker["id"], "maintenance_request_id": item["id"]},
            headers=admin["headers"],
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["caretaker_id"] == caretaker["id"]
        assert resp.json()["caretaker"] == "Sam Fixit"
        assert resp.json()["status"] == "Pending"

        roster = client.get("/api/maintenance/caretakers", headers=admin["headers"]).json()["items"]
        assert roster[0]["open_requests"] == 1
        feed = client.get("/api/activity", headers=admin["headers"]).json()["items"]
        assert feed[0]["action"] == "Assign Caretaker"

    def test_closed_request_conflicts(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        client.patch(f"/api/maintenance/{item['id']}", json={"status": "Cancelled"}, headers=admin["headers"])
        caretaker = add_caretaker(client, admin).json()
        resp = client.post(
            "/api/maintenance/assign",
            json={"caretaker_id": caretaker["id"], "maintenance_request_id": item["id"]},
            headers=admin["headers"],
        )
        assert resp.status_code == 409

    def test_other_admins_caretaker_is_404(self, client, admin, other_admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        theirs = add_caretaker(client, other_admin).json()
        resp = client.post(
            "/api/maintenance/assign",
            json={"caretaker_id": theirs["id"], "maintenance_request_id": item["id"]},
            headers=admin["headers"],
        )
        assert resp.status_code == 404

    def test_deleting_caretaker_unassigns_open_requests(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        caretaker = add_caretaker(client, admin).json()
        client.post(
            "/api/maintenance/assign",
            json={"caretaker_id": caretaker["id"], "maintenance_request_id": item["id"]},
            headers=admin["headers"],
        )

        resp = client.delete(f"/api/maintenance/caretakers/{caretaker['id']}", headers=admin["headers"])
        assert resp.status_code == 200
        got = client.get("/api/maintenance", headers=admin["headers"]).json()["items"][0]
        assert got["caretaker_id"] is None
        assert got["caretaker"] is None

    def test_free_text_caretaker_clears_roster_link(self, client, admin, tenant, booking):
        item = file_request(client, tenant, booking["listing_id"]).json()
        caretaker = add_caretaker(client, admin).json()
        client.post(
            "/api/maintenance/assign",
            json={"caretaker_id": caretaker["id"], "maintenance_request_id": item["id"]},
            headers=admin["headers"],
        )
        resp = client.patch(f"/api/maintenance/{item['id']}", json={"caretaker": "Local Handyman"}, headers=admin["headers"])
        assert resp.json()["caretaker"] == "Local Handyman"
        assert resp.json()["caretaker_id"] is None


class TestCounters:
    def test_counts(self, client, admin, other_admin, tenant, booking):
        file_request(client, tenant, booking["listing_id"], priority="Low")
        urgent = file_request(client, tenant, booking["listing_id"], priority="Urgent").json()
        file_request(client, tenant, booking["listing_id"], priority="High")
        client.patch(f"/api/maintenance/{urgent['id']}", json={"status": "Cancelled"}, headers=admin["headers"])

        assert client.get("/api/maintenance/count", headers=admin["headers"]).json() == {"count": 3}
        assert client.get("/api/maintenance/count-high-priority", headers=admin["headers"]).json() == {"count": 1}
        assert client.get("/api/maintenance/count", headers=other_admin["headers"]).json() == {"count": 0}

    def test_tenant_forbidden(self, client, tenant):
        assert client.get("/api/maintenance/count", headers=tenant["headers"]).status_code == 403


def test_older_database_gains_caretaker_column(tmp_path):
    old = sqlite3.connect(str(tmp_path / "old.db"))
    old.row_factory = sqlite3.Row
    old.execute("CREATE TABLE maintenance_requests (id INTEGER PRIMARY KEY, caretaker TEXT)")
    assert ensure_column(old, "maintenance_requests", "caretaker_id", "INTEGER NULL") is True
    assert ensure_column(old, "maintenance_requests", "caretaker_id", "INTEGER NULL") is False
    assert "caretaker_id" in get_table_columns(old, "maintenance_requests")
    old.close()
