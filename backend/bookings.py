"""
backend/bookings.py

Booking store. Tenants create and read their own bookings; admins read and
act on bookings made against their listings.

Date-driven statuses are refreshed lazily whenever bookings are listed.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional

try:
    from backend.activity import log_activity
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict
    from backend.errors import ConflictError, NotFoundError, ValidationError
    from backend.listings import get_listing_any_owner
    from backend.models import ActivityAction, BookingStatus, ListingStatus
    from backend.status_rules import (
        REVENUE_BOOKING_STATUSES,
        allowed_booking_actions,
        apply_booking_action,
        booking_status_for_date,
        parse_amount,
        parse_date,
    )
except ModuleNotFoundError:
    from activity import log_activity
    from config import IS_DEV
    from db import now_iso, row_to_dict
    from errors import ConflictError, NotFoundError, ValidationError
    from listings import get_listing_any_owner
    from models import ActivityAction, BookingStatus, ListingStatus
    from status_rules import (
        REVENUE_BOOKING_STATUSES,
        allowed_booking_actions,
        apply_booking_action,
        booking_status_for_date,
        parse_amount,
        parse_date,
    )


TREND_MONTHS = 12
MAX_TREND_MONTHS = 36


_BOOKING_SELECT = """
    SELECT b.*, l.title AS listing_title, l.address AS listing_address,
           l.owner_id AS owner_id, u.name AS tenant_name, u.email AS tenant_email,
           (SELECT id FROM leases WHERE booking_id = b.id) AS lease_id
    FROM bookings b
    JOIN listings l ON l.id = b.listing_id
    JOIN users u ON u.id = b.tenant_id
"""


def serialize_booking(row: sqlite3.Row) -> Dict[str, Any]:
    data = row_to_dict(row)
    data["allowed_actions"] = allowed_booking_actions(data["status"])
    return data


def default_rent_amount(price: float, check_in: date, check_out: date) -> float:
    """Monthly listing price prorated by nights (30-day month), rounded to cents."""
    nights = (check_out - check_in).days
    return round(price * nights / 30, 2)


def create_booking(
    conn: sqlite3.Connection,
    tenant_id: int,
    listing_id: int,
    check_in: Any,
    check_out: Any,
    guests: int = 1,
    rent_amount: Optional[float] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")
    if end <= start:
        raise ValidationError("check_out must be after check_in")
    if start < today:
        raise ValidationError("check_in cannot be in the past")
    if guests is None or int(guests) < 1:
        raise ValidationError("guests must be at least 1")

    listing = get_listing_any_owner(conn, listing_id)
    if listing["status"] != ListingStatus.available.value:
        raise ConflictError("Listing is not available for booking")

    if rent_amount is None:
        rent_amount = default_rent_amount(listing["price"], start, end)
    else:
        rent_amount = parse_amount(rent_amount, "rent_amount")

    now = now_iso()
    cur = conn.execute(
        """
        INSERT INTO bookings (
            tenant_id, listing_id, check_in, check_out, guests,
            rent_amount, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            tenant_id,
            listing_id,
            start.isoformat(),
            end.isoformat(),
            int(guests),
            float(rent_amount),
            BookingStatus.pending.value,
            now,
            now,
        ),
    )
    booking_id = cur.lastrowid

    if IS_DEV:
        print(f"[BOOKINGS] Created: id={booking_id}, tenant_id={tenant_id}, listing_id={listing_id}")

    return _fetch(conn, booking_id)


def _fetch(conn: sqlite3.Connection, booking_id: int) -> Dict[str, Any]:
    row = conn.execute(_BOOKING_SELECT + " WHERE b.id = ?", (booking_id,)).fetchone()
    if not row:
        raise NotFoundError("Booking not found")
    return serialize_booking(row)


def get_booking(conn: sqlite3.Connection, user_id: int, is_admin: bool, booking_id: int) -> Dict[str, Any]:
    """Fetch a booking visible to the caller (admin: own listings, tenant: own bookings)."""
    booking = _fetch(conn, booking_id)
    owner_field = "owner_id" if is_admin else "tenant_id"
    if booking[owner_field] != user_id:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings(
    conn: sqlite3.Connection,
    user_id: int,
    is_admin: bool,
    status: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    refresh_booking_statuses(conn, user_id, is_admin, today)

    scope = "l.owner_id = ?" if is_admin else "b.tenant_id = ?"
    params: List[Any] = [user_id]
    query = _BOOKING_SELECT + f" WHERE {scope}"
    if status:
        query += " AND b.status = ?"
        params.append(status)
    query += " ORDER BY b.check_in DESC, b.id DESC"
    return [serialize_booking(r) for r in conn.execute(query, params).fetchall()]


def refresh_booking_statuses(
    conn: sqlite3.Connection,
    user_id: int,
    is_admin: bool,
    today: Optional[date] = None,
) -> int:
    """Apply date-driven booking status changes. Returns how many rows changed."""
    today = today or date.today()
    scope = "l.owner_id = ?" if is_admin else "b.tenant_id = ?"
    rows = conn.execute(
        f"""
        SELECT b.id, b.status, b.check_in, b.check_out
        FROM bookings b JOIN listings l ON l.id = b.listing_id
        WHERE {scope} AND b.status NOT IN (?, ?)
        """,
        (user_id, BookingStatus.cancelled.value, BookingStatus.completed.value),
    ).fetchall()

    changed = 0
    now = now_iso()
    for row in rows:
        new_status = booking_status_for_date(row["status"], row["check_in"], row["check_out"], today)
        if new_status != row["status"]:
            conn.execute(
                "UPDATE bookings SET status = ?, updated_at = ? WHERE id = ?",
                (new_status, now, row["id"]),
            )
            changed += 1

    if changed and IS_DEV:
        print(f"[BOOKINGS] Refreshed statuses: user_id={user_id}, changed={changed}")
    return changed


def apply_action(conn: sqlite3.Connection, admin_id: int, booking_id: int, action: str) -> Dict[str, Any]:
    booking = get_booking(conn, admin_id, True, booking_id)
    new_status = apply_booking_action(booking["status"], action)
    conn.execute(
        "UPDATE bookings SET status = ?, updated_at = ? WHERE id = ?",
        (new_status, now_iso(), booking_id),
    )
    log_activity(
        conn,
        admin_id,
        ActivityAction.update_booking,
        f"Booking #{booking_id} for '{booking['listing_title']}' is now {new_status}",
    )
    return _fetch(conn, booking_id)


def delete_booking(conn: sqlite3.Connection, admin_id: int, booking_id: int) -> None:
    booking = get_booking(conn, admin_id, True, booking_id)
    if booking["lease_id"] is not None:
        raise ConflictError("Booking has a lease; delete the lease first")
    conn.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
    log_activity(
        conn,
        admin_id,
        ActivityAction.delete_booking,
        f"Deleted booking #{booking_id} for '{booking['listing_title']}'",
    )


def _month_totals(conn: sqlite3.Connection, admin_id: int, months: List[str]) -> Dict[str, Dict[str, Any]]:
    """{"YYYY-MM": {"bookings", "total"}} for the given months; missing months are zero."""
    totals = {m: {"bookings": 0, "total": 0.0} for m in months}
    if not months:
        return totals
    status_marks = ", ".join("?" for _ in REVENUE_BOOKING_STATUSES)
    month_marks = ", ".join("?" for _ in months)
    rows = conn.execute(
        f"""
        SELECT substr(b.check_in, 1, 7) AS month, COUNT(*) AS n,
               COALESCE(SUM(b.rent_amount), 0) AS total
        FROM bookings b JOIN listings l ON l.id = b.listing_id
        WHERE l.owner_id = ? AND substr(b.check_in, 1, 7) IN ({month_marks})
          AND b.status IN ({status_marks})
        GROUP BY substr(b.check_in, 1, 7)
        """,
        (admin_id, *months, *REVENUE_BOOKING_STATUSES),
    ).fetchall()
    for row in rows:
        totals[row["month"]] = {"bookings": row["n"], "total": round(float(row["total"]), 2)}
    return totals


def _month_key(year: int, month: int) -> str:
    if not 1 <= int(month) <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not 1 <= int(year) <= 9999:
        raise ValidationError("year is out of range")
    return f"{int(year):04d}-{int(month):02d}"


def monthly_revenue(conn: sqlite3.Connection, admin_id: int, year: int, month: int) -> Dict[str, Any]:
    """
    Revenue for one calendar month: rent of revenue-bearing bookings whose
    check-in falls in that month, with the bookings themselves.
    """
    key = _month_key(year, month)
    placeholders = ", ".join("?" for _ in REVENUE_BOOKING_STATUSES)
    rows = conn.execute(
        _BOOKING_SELECT
        + f"""
        WHERE l.owner_id = ? AND substr(b.check_in, 1, 7) = ?
          AND b.status IN ({placeholders})
        ORDER BY b.check_in, b.id
        """,
        (admin_id, key, *REVENUE_BOOKING_STATUSES),
    ).fetchall()
    return {
        "month": key,
        "label": date(int(year), int(month), 1).strftime("%B %Y"),
        "bookings": len(rows),
        "total": round(sum(float(r["rent_amount"]) for r in rows), 2),
        "items": [serialize_booking(r) for r in rows],
    }


def current_month_revenue(conn: sqlite3.Connection, admin_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """Sum of rent for revenue-bearing bookings whose check-in falls in this month."""
    today = today or date.today()
    month = today.strftime("%Y-%m")
    return {"month": month, **_month_totals(conn, admin_id, [month])[month]}


def revenue_trend(
    conn: sqlite3.Connection,
    admin_id: int,
    months: int = TREND_MONTHS,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Revenue for the last `months` calendar months, oldest first, ending with this month."""
    today = today or date.today()
    months = max(1, min(int(months), MAX_TREND_MONTHS))
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append((year, month))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    keys.reverse()

    totals = _month_totals(conn, admin_id, [f"{y:04d}-{m:02d}" for y, m in keys])
    return [
        {
            "month": f"{y:04d}-{m:02d}",
            "label": date(y, m, 1).strftime("%b %Y"),
            **totals[f"{y:04d}-{m:02d}"],
        }
        for y, m in keys
    ]
