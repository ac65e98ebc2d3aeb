"""
backend/invoices.py

Invoices raised against an admin's leases. Paid is sticky; otherwise the
status follows the due date and is refreshed whenever invoices are listed.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional

try:
    from backend.activity import log_activity
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict
    from backend.errors import InvalidTransitionError, NotFoundError
    from backend.models import ActivityAction, InvoiceStatus
    from backend.status_rules import invoice_status_for_date, parse_amount, parse_date
except ModuleNotFoundError:
    from activity import log_activity
    from config import IS_DEV
    from db import now_iso, row_to_dict
    from errors import InvalidTransitionError, NotFoundError
    from models import ActivityAction, InvoiceStatus
    from status_rules import invoice_status_for_date, parse_amount, parse_date


_INVOICE_SELECT = """
    SELECT i.*, le.tenant_id AS tenant_id, u.name AS tenant_name,
           l.address AS listing_address
    FROM invoices i
    JOIN leases le ON le.id = i.lease_id
    JOIN listings l ON l.id = le.listing_id
    JOIN users u ON u.id = le.tenant_id
"""


def generate_description(tenant_name: str, address: str, amount: float, due_date: date) -> str:
    return (
        f"Monthly rent for {tenant_name} at {address}: "
        f"${amount:,.2f} due {due_date.strftime('%d %B %Y')}"
    )


def _fetch(conn: sqlite3.Connection, admin_id: int, invoice_id: int) -> Dict[str, Any]:
    row = conn.execute(
        _INVOICE_SELECT + " WHERE i.id = ? AND i.admin_id = ?",
        (invoice_id, admin_id),
    ).fetchone()
    if not row:
        raise NotFoundError("Invoice not found")
    return row_to_dict(row)


def create_invoice(
    conn: sqlite3.Connection,
    admin_id: int,
    lease_id: int,
    amount: Any,
    due_date: Any,
    description: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    amount = parse_amount(amount, "amount")
    due = parse_date(due_date, "due_date")

    lease = conn.execute(
        """
        SELECT le.id, u.name AS tenant_name, l.address AS address
        FROM leases le
        JOIN users u ON u.id = le.tenant_id
        JOIN listings l ON l.id = le.listing_id
        WHERE le.id = ? AND le.admin_id = ?
        """,
        (lease_id, admin_id),
    ).fetchone()
    if not lease:
        raise NotFoundError("Lease not found")

    description = (description or "").strip() or generate_description(
        lease["tenant_name"], lease["address"], amount, due
    )
    status = invoice_status_for_date(InvoiceStatus.pending.value, due, today)
    now = now_iso()
    cur = conn.execute(
        """
        INSERT INTO invoices (
            admin_id, lease_id, description, amount, due_date, status,
            created_at, paid_at, last_status_update
        ) VALUES (?, ?, ?, ?, ?, ?, ?, NULL, ?)
        """,
        (admin_id, lease_id, description, amount, due.isoformat(), status, now, now),
    )
    invoice_id = cur.lastrowid
    log_activity(conn, admin_id, ActivityAction.create_invoice, f"Invoice #{invoice_id}: {description}")

    if IS_DEV:
        print(f"[INVOICES] Created: id={invoice_id}, lease_id={lease_id}, status={status}")
    return _fetch(conn, admin_id, invoice_id)


def refresh_invoice_statuses(conn: sqlite3.Connection, admin_id: int, today: Optional[date] = None) -> int:
    today = today or date.today()
    rows = conn.execute(
        "SELECT id, status, due_date FROM invoices WHERE admin_id = ? AND status != ?",
        (admin_id, InvoiceStatus.paid.value),
    ).fetchall()
    changed = 0
    now = now_iso()
    for row in rows:
        new_status = invoice_status_for_date(row["status"], row["due_date"], today)
        if new_status != row["status"]:
            conn.execute(
                "UPDATE invoices SET status = ?, last_status_update = ? WHERE id = ?",
                (new_status, now, row["id"]),
            )
            changed += 1
    return changed


def list_invoices(
    conn: sqlite3.Connection,
    admin_id: int,
    status: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    refresh_invoice_statuses(conn, admin_id, today)
    params: List[Any] = [admin_id]
    query = _INVOICE_SELECT + " WHERE i.admin_id = ?"
    if status:
        query += " AND i.status = ?"
        params.append(status)
    query += " ORDER BY i.due_date DESC, i.id DESC"
    return [row_to_dict(r) for r in conn.execute(query, params).fetchall()]


def get_invoice(
    conn: sqlite3.Connection,
    admin_id: int,
    invoice_id: int,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """One of the admin's invoices, with its due-date status brought up to date."""
    invoice = _fetch(conn, admin_id, invoice_id)
    new_status = invoice_status_for_date(invoice["status"], invoice["due_date"], today or date.today())
    if new_status != invoice["status"]:
        conn.execute(
            "UPDATE invoices SET status = ?, last_status_update = ? WHERE id = ?",
            (new_status, now_iso(), invoice_id),
        )
        invoice = _fetch(conn, admin_id, invoice_id)
    return invoice


def mark_paid(conn: sqlite3.Connection, admin_id: int, invoice_id: int) -> Dict[str, Any]:
    invoice = _fetch(conn, admin_id, invoice_id)
    if invoice["status"] == InvoiceStatus.paid.value:
        raise InvalidTransitionError(invoice["status"], "pay", entity="invoice")

    now = now_iso()
    conn.execute(
        "UPDATE invoices SET status = ?, paid_at = ?, last_status_update = ? WHERE id = ?",
        (InvoiceStatus.paid.value, now, now, invoice_id),
    )
    log_activity(
        conn,
        admin_id,
        ActivityAction.mark_invoice_paid,
        f"Invoice #{invoice_id} paid (${invoice['amount']:,.2f})",
    )
    return _fetch(conn, admin_id, invoice_id)


def invoice_stats(conn: sqlite3.Connection, admin_id: int, today: Optional[date] = None) -> Dict[str, Dict[str, float]]:
    """Count and total amount per invoice status."""
    refresh_invoice_statuses(conn, admin_id, today)
    stats: Dict[str, Dict[str, float]] = {s.value: {"count": 0, "total": 0.0} for s in InvoiceStatus}
    rows = conn.execute(
        """
        SELECT status, COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total
        FROM invoices WHERE admin_id = ? GROUP BY status
        """,
        (admin_id,),
    ).fetchall()
    for row in rows:
        stats[row["status"]] = {"count": row["n"], "total": round(float(row["total"]), 2)}
    return stats
