"""
backend/maintenance.py

Maintenance requests. Tenants file them against listings they have booked
or leased; the listing's owner triages them and assigns caretakers from
their roster (caretakers.py).
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

try:
    from backend.activity import log_activity
    from backend.caretakers import CLOSED_STATUSES, full_name, get_caretaker
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict
    from backend.errors import ConflictError, NotFoundError, ValidationError
    from backend.listings import get_listing_any_owner
    from backend.models import ActivityAction, MaintenancePriority, MaintenanceStatus
    from backend.status_rules import check_maintenance_transition
except ModuleNotFoundError:
    from activity import log_activity
    from caretakers import CLOSED_STATUSES, full_name, get_caretaker
    from config import IS_DEV
    from db import now_iso, row_to_dict
    from errors import ConflictError, NotFoundError, ValidationError
    from listings import get_listing_any_owner
    from models import ActivityAction, MaintenancePriority, MaintenanceStatus
    from status_rules import check_maintenance_transition


PRIORITIES = [p.value for p in MaintenancePriority]
STATUSES = [s.value for s in MaintenanceStatus]
HIGH_PRIORITIES = (MaintenancePriority.high.value, MaintenancePriority.urgent.value)

_REQUEST_SELECT = """
    SELECT m.*, l.title AS listing_title, l.address AS listing_address,
           l.owner_id AS owner_id, u.name AS tenant_name
    FROM maintenance_requests m
    JOIN listings l ON l.id = m.listing_id
    JOIN users u ON u.id = m.tenant_id
"""


def _check_priority(value: Any) -> str:
    priority = value.value if hasattr(value, "value") else str(value)
    if priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of: {', '.join(PRIORITIES)}")
    return priority


def _check_status(value: Any) -> str:
    status = value.value if hasattr(value, "value") else str(value)
    if status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
    return status


def _fetch(conn: sqlite3.Connection, request_id: int) -> Dict[str, Any]:
    row = conn.execute(_REQUEST_SELECT + " WHERE m.id = ?", (request_id,)).fetchone()
    if not row:
        raise NotFoundError("Maintenance request not found")
    return row_to_dict(row)


def _fetch_for_admin(conn: sqlite3.Connection, admin_id: int, request_id: int) -> Dict[str, Any]:
    request = _fetch(conn, request_id)
    if request["owner_id"] != admin_id:
        raise NotFoundError("Maintenance request not found")
    return request


def tenant_has_stay(conn: sqlite3.Connection, tenant_id: int, listing_id: int) -> bool:
    row = conn.execute(
        """
        SELECT 1 FROM bookings WHERE tenant_id = ? AND listing_id = ?
        UNION
        SELECT 1 FROM leases WHERE tenant_id = ? AND listing_id = ?
        LIMIT 1
        """,
        (tenant_id, listing_id, tenant_id, listing_id),
    ).fetchone()
    return row is not None


def create_request(
    conn: sqlite3.Connection,
    tenant_id: int,
    listing_id: int,
    issue: Optional[str],
    description: Optional[str] = "",
    priority: Any = MaintenancePriority.medium.value,
) -> Dict[str, Any]:
    if not issue or not issue.strip():
        raise ValidationError("issue is required")
    priority = _check_priority(priority or MaintenancePriority.medium.value)
    get_listing_any_owner(conn, listing_id)
    if not tenant_has_stay(conn, tenant_id, listing_id):
        raise ValidationError("You can only report issues for a property you have booked or leased")

    now = now_iso()
    cur = conn.execute(
        """
        INSERT INTO maintenance_requests (
            listing_id, tenant_id, issue, description, priority, status,
            caretaker, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, NULL, ?, ?)
        """,
        (
            listing_id,
            tenant_id,
            issue.strip(),
            (description or "").strip(),
            priority,
            MaintenanceStatus.pending.value,
            now,
            now,
        ),
    )
    if IS_DEV:
        print(f"[MAINTENANCE] Filed: id={cur.lastrowid}, listing_id={listing_id}, priority={priority}")
    return _fetch(conn, cur.lastrowid)


def list_requests(
    conn: sqlite3.Connection,
    user_id: int,
    is_admin: bool,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    scope = "l.owner_id = ?" if is_admin else "m.tenant_id = ?"
    params: List[Any] = [user_id]
    query = _REQUEST_SELECT + f" WHERE {scope}"
    if status:
        query += " AND m.status = ?"
        params.append(_check_status(status))
    query += " ORDER BY m.created_at DESC, m.id DESC"
    return [row_to_dict(r) for r in conn.execute(query, params).fetchall()]


def update_request(
    conn: sqlite3.Connection,
    admin_id: int,
    request_id: int,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update status, priority and/or caretaker on a request for one of the
    admin's listings. Fields that already hold the requested value are left
    alone; a request with nothing to change is returned untouched.
    """
    current = _fetch_for_admin(conn, admin_id, request_id)

    sets: List[str] = []
    params: List[Any] = []
    if changes.get("status") is not None:
        status = _check_status(changes["status"])
        if status != current["status"]:
            check_maintenance_transition(current["status"], status)
            sets.append("status = ?")
            params.append(status)
    if changes.get("priority") is not None:
        priority = _check_priority(changes["priority"])
        if priority != current["priority"]:
            sets.append("priority = ?")
            params.append(priority)
    if "caretaker" in changes:
        caretaker = (changes["caretaker"] or "").strip() or None
        if caretaker != current["caretaker"]:
            # free text replaces any roster assignment
            sets.extend(["caretaker = ?", "caretaker_id = NULL"])
            params.append(caretaker)

    if not sets:
        return current

    sets.append("updated_at = ?")
    params.extend([now_iso(), request_id])
    conn.execute(f"UPDATE maintenance_requests SET {', '.join(sets)} WHERE id = ?", params)

    updated = _fetch(conn, request_id)
    log_activity(
        conn,
        admin_id,
        ActivityAction.update_maintenance,
        f"'{updated['issue']}' at {updated['listing_address']}: {updated['status']}",
    )
    return updated


def assign_caretaker(
    conn: sqlite3.Connection,
    admin_id: int,
    request_id: int,
    caretaker_id: int,
) -> Dict[str, Any]:
    """
    Assign one of the admin's caretakers to an open request.

    Raises:
        NotFoundError: Unknown caretaker or request (or another admin's)
        ConflictError: The request is already Completed or Cancelled
    """
    caretaker = get_caretaker(conn, admin_id, caretaker_id)
    current = _fetch_for_admin(conn, admin_id, request_id)
    if current["status"] in CLOSED_STATUSES:
        raise ConflictError(f"Cannot assign a caretaker to a {current['status'].lower()} request")
    if current["caretaker_id"] == caretaker_id:
        return current

    name = full_name(caretaker)
    conn.execute(
        "UPDATE maintenance_requests SET caretaker_id = ?, caretaker = ?, updated_at = ? WHERE id = ?",
        (caretaker_id, name, now_iso(), request_id),
    )
    log_activity(
        conn,
        admin_id,
        ActivityAction.assign_caretaker,
        f"{name} assigned to '{current['issue']}' at {current['listing_address']}",
    )

    if IS_DEV:
        print(f"[MAINTENANCE] Assigned: request_id={request_id}, caretaker_id={caretaker_id}")
    return _fetch(conn, request_id)


def count_requests(conn: sqlite3.Connection, admin_id: int) -> int:
    return conn.execute(
        """
        SELECT COUNT(*) FROM maintenance_requests m
        JOIN listings l ON l.id = m.listing_id
        WHERE l.owner_id = ?
        """,
        (admin_id,),
    ).fetchone()[0]


def count_high_priority(conn: sqlite3.Connection, admin_id: int) -> int:
    """Open (not Completed or Cancelled) requests marked High or Urgent."""
    return conn.execute(
        """
        SELECT COUNT(*) FROM maintenance_requests m
        JOIN listings l ON l.id = m.listing_id
        WHERE l.owner_id = ? AND m.priority IN (?, ?) AND m.status NOT IN (?, ?)
        """,
        (admin_id, *HIGH_PRIORITIES, *CLOSED_STATUSES),
    ).fetchone()[0]
