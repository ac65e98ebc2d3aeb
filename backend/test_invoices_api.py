"""
backend/test_invoices_api.py

Invoices: creation, auto description, date-driven status, fetch, payment, stats.

Run:
    pytest backend/test_invoices_api.py -v
"""

from datetime import date

import pytest

from backend import invoices, leases
from backend.errors import NotFoundError, ValidationError
from backend.status_rules import invoice_status_for_date


@pytest.fixture
def lease(client, admin, booking):
    resp = client.post("/api/leases", json={"booking_id": booking["id"]}, headers=admin["headers"])
    return resp.json()


class TestCreate:
    def test_auto_description(self, client, admin, lease, future):
        resp = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 1500, "due_date": future(10)},
            headers=admin["headers"],
        )
        assert resp.status_code == 201, resp.text
        invoice = resp.json()
        assert invoice["status"] == "Pending"
        assert "Tom Tenant" in invoice["description"]
        assert "12 Harbour Road" in invoice["description"]
        assert "$1,500.00" in invoice["description"]

    def test_custom_description_kept(self, client, admin, lease, future):
        resp = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 80, "due_date": future(3), "description": "Water bill"},
            headers=admin["headers"],
        )
        assert resp.json()["description"] == "Water bill"

    def test_amount_must_be_positive(self, client, admin, lease, future):
        resp = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": -5, "due_date": future(3)},
            headers=admin["headers"],
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("amount", ["NaN", "Infinity"])
    def test_amount_must_be_finite(self, client, admin, lease, future, amount):
        resp = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": amount, "due_date": future(3)},
            headers=admin["headers"],
        )
        assert resp.status_code == 400, resp.text
        assert resp.json()["error"] == "validation_error"
        assert client.get("/api/invoices", headers=admin["headers"]).json()["total"] == 0

    def test_other_admins_lease_is_404(self, client, other_admin, lease, future):
        resp = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 10, "due_date": future(3)},
            headers=other_admin["headers"],
        )
        assert resp.status_code == 404

    def test_tenant_forbidden(self, client, tenant):
        assert client.get("/api/invoices", headers=tenant["headers"]).status_code == 403


class TestStatus:
    def test_rules(self):
        today = date(2025, 4, 1)
        assert invoice_status_for_date("Pending", "2025-04-01", today) == "Pending"
        assert invoice_status_for_date("Pending", "2025-03-31", today) == "Overdue"
        assert invoice_status_for_date("Overdue", "2025-05-01", today) == "Pending"
        assert invoice_status_for_date("Paid", "2020-01-01", today) == "Paid"

    def test_overdue_on_list_then_paid(self, conn, admin, booking):
        lease = leases.create_lease(conn, admin["id"], booking["id"])
        created = invoices.create_invoice(conn, admin["id"], lease["id"], 500, "2025-04-10", today=date(2025, 4, 1))
        assert created["status"] == "Pending"

        listed = invoices.list_invoices(conn, admin["id"], today=date(2025, 4, 11))
        assert listed[0]["status"] == "Overdue"

        paid = invoices.mark_paid(conn, admin["id"], created["id"])
        assert paid["status"] == "Paid"
        assert paid["paid_at"]
        listed = invoices.list_invoices(conn, admin["id"], today=date(2025, 6, 1))
        assert listed[0]["status"] == "Paid"

    def test_get_one_refreshes_status(self, conn, admin, booking):
        lease = leases.create_lease(conn, admin["id"], booking["id"])
        created = invoices.create_invoice(conn, admin["id"], lease["id"], 500, "2025-04-10", today=date(2025, 4, 1))

        assert invoices.get_invoice(conn, admin["id"], created["id"], today=date(2025, 4, 5))["status"] == "Pending"
        overdue = invoices.get_invoice(conn, admin["id"], created["id"], today=date(2025, 4, 11))
        assert overdue["status"] == "Overdue"
        assert overdue["last_status_update"] >= created["last_status_update"]

    def test_service_validation(self, conn, admin):
        with pytest.raises(ValidationError):
            invoices.create_invoice(conn, admin["id"], 1, 100, "not-a-date")
        with pytest.raises(NotFoundError):
            invoices.create_invoice(conn, admin["id"], 999, 100, "2030-01-01")


class TestPayAndStats:
    def test_pay_twice_is_invalid(self, client, admin, lease, future):
        invoice = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 200, "due_date": future(5)},
            headers=admin["headers"],
        ).json()
        assert client.post(f"/api/invoices/{invoice['id']}/pay", headers=admin["headers"]).status_code == 200
        again = client.post(f"/api/invoices/{invoice['id']}/pay", headers=admin["headers"])
        assert again.status_code == 409
        assert again.json()["error"] == "invalid_transition"

    def test_stats(self, client, admin, lease, future):
        for amount in (100, 250):
            client.post(
                "/api/invoices",
                json={"lease_id": lease["id"], "amount": amount, "due_date": future(5)},
                headers=admin["headers"],
            )
        first = client.get("/api/invoices", headers=admin["headers"]).json()["items"][-1]
        client.post(f"/api/invoices/{first['id']}/pay", headers=admin["headers"])

        stats = client.get("/api/invoices/stats", headers=admin["headers"]).json()
        assert stats["Paid"]["count"] == 1
        assert stats["Pending"]["count"] == 1
        assert stats["Overdue"] == {"count": 0, "total": 0.0}
        assert stats["Paid"]["total"] + stats["Pending"]["total"] == 350.0


class TestFetchOne:
    def test_get_by_id(self, client, admin, lease, future):
        invoice = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 320, "due_date": future(7)},
            headers=admin["headers"],
        ).json()
        resp = client.get(f"/api/invoices/{invoice['id']}", headers=admin["headers"])
        assert resp.status_code == 200
        assert resp.json()["amount"] == 320.0
        assert resp.json()["tenant_name"] == "Tom Tenant"

    def test_other_admin_and_unknown_are_404(self, client, admin, other_admin, lease, future):
        invoice = client.post(
            "/api/invoices",
            json={"lease_id": lease["id"], "amount": 320, "due_date": future(7)},
            headers=admin["headers"],
        ).json()
        assert client.get(f"/api/invoices/{invoice['id']}", headers=other_admin["headers"]).status_code == 404
        assert client.get("/api/invoices/9999", headers=admin["headers"]).status_code == 404

    def test_stats_path_is_not_an_id(self, client, admin):
        assert client.get("/api/invoices/stats", headers=admin["headers"]).status_code == 200
