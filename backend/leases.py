"""
backend/leases.py

Lease persistence and lifecycle side effects.

State rules come from lease_lifecycle.py; this module loads and stores
leases, keeps the listing status in step (Rented while a lease occupies it,
Available once none does) and records activity entries.

All queries are scoped by admin_id from the auth context; tenants may
only list the leases they hold.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional

try:
    from backend import lease_lifecycle
    from backend.activity import log_activity
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict
    from backend.errors import ConflictError, NotFoundError
    from backend.listings import set_listing_status
    from backend.models import ActivityAction, BookingStatus, LeaseAction, LeaseStatus, ListingStatus
except ModuleNotFoundError:
    import lease_lifecycle
    from activity import log_activity
    from config import IS_DEV
    from db import now_iso, row_to_dict
    from errors import ConflictError, NotFoundError
    from listings import set_listing_status
    from models import ActivityAction, BookingStatus, LeaseAction, LeaseStatus, ListingStatus


_LEASE_SELECT = """
    SELECT le.*, l.title AS listing_title, l.address AS listing_address,
           u.name AS tenant_name, u.email AS tenant_email
    FROM leases le
    JOIN listings l ON l.id = le.listing_id
    JOIN users u ON u.id = le.tenant_id
"""


def serialize_lease(row: sqlite3.Row) -> Dict[str, Any]:
    data = row_to_dict(row)
    data["allowed_actions"] = lease_lifecycle.allowed_actions(data["status"])
    return data


def _fetch(conn: sqlite3.Connection, admin_id: int, lease_id: int) -> Dict[str, Any]:
    row = conn.execute(
        _LEASE_SELECT + " WHERE le.id = ? AND le.admin_id = ?",
        (lease_id, admin_id),
    ).fetchone()
    if not row:
        raise NotFoundError("Lease not found")
    return serialize_lease(row)


def _release_listing_if_vacant(conn: sqlite3.Connection, listing_id: int) -> None:
    """Put a Rented listing back to Available once no lease occupies it."""
    placeholders = ", ".join("?" for _ in lease_lifecycle.OCCUPYING_STATUSES)
    occupied = conn.execute(
        f"SELECT COUNT(*) FROM leases WHERE listing_id = ? AND status IN ({placeholders})",
        (listing_id, *lease_lifecycle.OCCUPYING_STATUSES),
    ).fetchone()[0]
    if not occupied:
        set_listing_status(
            conn,
            listing_id,
            ListingStatus.available.value,
            only_from=ListingStatus.rented.value,
        )


def _store_status(conn: sqlite3.Connection, lease_id: int, status: str, **dates: str) -> None:
    now = now_iso()
    sets = ["status = ?", "updated_at = ?", "last_status_update = ?"]
    params: List[Any] = [status, now, now]
    for column, value in dates.items():
        sets.append(f"{column} = ?")
        params.append(value)
    params.append(lease_id)
    conn.execute(f"UPDATE leases SET {', '.join(sets)} WHERE id = ?", params)


def create_lease(
    conn: sqlite3.Connection,
    admin_id: int,
    booking_id: int,
) -> Dict[str, Any]:
    """
    Create a Pending lease from a booking on one of the admin's listings.

    Tenant, listing, dates and rent are copied from the booking.

    Raises:
        NotFoundError: Booking missing or on another admin's listing
        ConflictError: Booking already leased or cancelled
    """
    booking = conn.execute(
        """
        SELECT b.*, l.owner_id AS owner_id, l.address AS listing_address
        FROM bookings b JOIN listings l ON l.id = b.listing_id
        WHERE b.id = ?
        """,
        (booking_id,),
    ).fetchone()
    if not booking or booking["owner_id"] != admin_id:
        raise NotFoundError("Booking not found")
    if booking["status"] == BookingStatus.cancelled.value:
        raise ConflictError("Cannot create a lease from a cancelled booking")

    existing = conn.execute("SELECT id FROM leases WHERE booking_id = ?", (booking_id,)).fetchone()
    if existing:
        raise ConflictError(f"Booking {booking_id} already has lease {existing['id']}")

    now = now_iso()
    try:
        cur = conn.execute(
            """
            INSERT INTO leases (
                admin_id, tenant_id, listing_id, booking_id, start_date, end_date,
                rent_amount, status, renewal_count, created_at, updated_at, last_status_update
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?)
            """,
            (
                admin_id,
                booking["tenant_id"],
                booking["listing_id"],
                booking_id,
                booking["check_in"],
                booking["check_out"],
                booking["rent_amount"],
                LeaseStatus.pending.value,
                now,
                now,
                now,
            ),
        )
    except sqlite3.IntegrityError:
        # Concurrent request won the UNIQUE(booking_id) race
        print(f"[LEASES] Duplicate lease rejected: booking_id={booking_id}")
        raise ConflictError(f"Booking {booking_id} already has a lease")

    lease_id = cur.lastrowid
    log_activity(
        conn,
        admin_id,
        ActivityAction.create_lease,
        f"Created lease #{lease_id} for {booking['listing_address']}",
    )
    if IS_DEV:
        print(f"[LEASES] Created: id={lease_id}, booking_id={booking_id}, admin_id={admin_id}")
    return _fetch(conn, admin_id, lease_id)


def _refresh_one(conn: sqlite3.Connection, lease: Dict[str, Any], today: date) -> bool:
    """Persist the time-based status for one lease. Returns True when it changed."""
    new_status = lease_lifecycle.evaluate_status(lease, today)
    if new_status == lease["status"]:
        return False

    _store_status(conn, lease["id"], new_status)
    if new_status == LeaseStatus.expired.value:
        _release_listing_if_vacant(conn, lease["listing_id"])
        log_activity(
            conn,
            lease["admin_id"],
            ActivityAction.update_lease,
            f"Lease #{lease['id']} expired",
        )
    if IS_DEV:
        print(f"[LEASES] Status refresh: id={lease['id']}, {lease['status']} -> {new_status}")
    return True


def refresh_statuses(
    conn: sqlite3.Connection,
    user_id: int,
    today: Optional[date] = None,
    scope: str = "admin_id",
) -> int:
    """Apply time-based status changes to open leases where `scope` (admin_id or tenant_id) matches."""
    if scope not in ("admin_id", "tenant_id"):
        raise ValueError(f"Unsupported lease scope: {scope}")
    today = today or date.today()
    placeholders = ", ".join("?" for _ in lease_lifecycle.OPEN_STATUSES)
    rows = conn.execute(
        f"SELECT * FROM leases WHERE {scope} = ? AND status IN ({placeholders})",
        (user_id, *lease_lifecycle.OPEN_STATUSES),
    ).fetchall()
    return sum(1 for row in rows if _refresh_one(conn, row_to_dict(row), today))


def get_lease(
    conn: sqlite3.Connection,
    admin_id: int,
    lease_id: int,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    lease = _fetch(conn, admin_id, lease_id)
    if _refresh_one(conn, lease, today or date.today()):
        lease = _fetch(conn, admin_id, lease_id)
    return lease


def list_leases(
    conn: sqlite3.Connection,
    user_id: int,
    status: Optional[str] = None,
    today: Optional[date] = None,
    scope: str = "admin_id",
) -> List[Dict[str, Any]]:
    """Leases the admin owns, or with scope="tenant_id" the leases a tenant holds."""
    refresh_statuses(conn, user_id, today, scope=scope)
    params: List[Any] = [user_id]
    query = _LEASE_SELECT + f" WHERE le.{scope} = ?"
    if status:
        query += " AND le.status = ?"
        params.append(status)
    query += " ORDER BY le.created_at DESC, le.id DESC"
    return [serialize_lease(r) for r in conn.execute(query, params).fetchall()]


def transition_lease(
    conn: sqlite3.Connection,
    admin_id: int,
    lease_id: int,
    action: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Apply an explicit lifecycle action (Activate, Cancel, Renew).

    The lease's time-based status is brought up to date first, so an elapsed
    Pending lease cannot be activated. On any failure the lease is unchanged.

    Raises:
        NotFoundError: Lease missing or owned by another admin
        InvalidTransitionError: Action not permitted from the current status
        ValidationError: Unknown action, or a bad Renew date range
    """
    today = today or date.today()
    lease = get_lease(conn, admin_id, lease_id, today)
    action_value = action.value if hasattr(action, "value") else str(action)
    new_status = lease_lifecycle.next_status(lease["status"], action_value)

    if action_value == LeaseAction.renew.value:
        start, end = lease_lifecycle.validate_renewal(
            lease["start_date"], end_date, today, new_start=start_date
        )
        conn.execute(
            "UPDATE leases SET renewal_count = renewal_count + 1 WHERE id = ?",
            (lease_id,),
        )
        _store_status(conn, lease_id, new_status, start_date=start.isoformat(), end_date=end.isoformat())
        detail = f"Renewed lease #{lease_id} until {end.isoformat()}"
    else:
        _store_status(conn, lease_id, new_status)
        detail = f"Lease #{lease_id}: {lease['status']} -> {new_status}"

    if new_status in lease_lifecycle.OCCUPYING_STATUSES:
        set_listing_status(conn, lease["listing_id"], ListingStatus.rented.value)
    elif new_status == LeaseStatus.cancelled.value:
        _release_listing_if_vacant(conn, lease["listing_id"])

    log_activity(conn, admin_id, ActivityAction.update_lease, detail)
    if IS_DEV:
        print(f"[LEASES] Transition: id={lease_id}, action={action_value}, "
              f"{lease['status']} -> {new_status}")
    return _fetch(conn, admin_id, lease_id)


def delete_lease(conn: sqlite3.Connection, admin_id: int, lease_id: int) -> None:
    lease = _fetch(conn, admin_id, lease_id)
    conn.execute("DELETE FROM leases WHERE id = ? AND admin_id = ?", (lease_id, admin_id))
    _release_listing_if_vacant(conn, lease["listing_id"])
    log_activity(
        conn,
        admin_id,
        ActivityAction.delete_lease,
        f"Deleted lease #{lease_id} for {lease['listing_address']}",
    )


def lease_stats(conn: sqlite3.Connection, admin_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """Active lease count and the share of the admin's listings that are leased."""
    refresh_statuses(conn, admin_id, today)

    by_status = {s.value: 0 for s in LeaseStatus}
    for row in conn.execute(
        "SELECT status, COUNT(*) AS n FROM leases WHERE admin_id = ? GROUP BY status",
        (admin_id,),
    ).fetchall():
        by_status[row["status"]] = row["n"]

    placeholders = ", ".join("?" for _ in lease_lifecycle.OCCUPYING_STATUSES)
    leased_listings = conn.execute(
        f"""
        SELECT COUNT(DISTINCT listing_id) FROM leases
        WHERE admin_id = ? AND status IN ({placeholders})
        """,
        (admin_id, *lease_lifecycle.OCCUPYING_STATUSES),
    ).fetchone()[0]
    total_listings = conn.execute(
        "SELECT COUNT(*) FROM listings WHERE owner_id = ?", (admin_id,)
    ).fetchone()[0]

    leased_percentage = round(leased_listings / total_listings * 100, 1) if total_listings else 0.0
    return {
        "active_leases": by_status[LeaseStatus.active.value] + by_status[LeaseStatus.expiring_soon.value],
        "by_status": by_status,
        "leased_listings": leased_listings,
        "total_listings": total_listings,
        "leased_percentage": leased_percentage,
    }
