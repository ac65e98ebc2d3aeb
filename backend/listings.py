"""
backend/listings.py

Listing (property) store. Every query is scoped by owner_id taken from the
auth context; another admin's listing is reported as not found.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

try:
    from backend.activity import log_activity
    from backend.config import IS_DEV
    from backend.db import now_iso
    from backend.errors import ConflictError, NotFoundError, ValidationError
    from backend.models import ActivityAction, ListingStatus
    from backend.status_rules import parse_amount
except ModuleNotFoundError:
    from activity import log_activity
    from config import IS_DEV
    from db import now_iso
    from errors import ConflictError, NotFoundError, ValidationError
    from models import ActivityAction, ListingStatus
    from status_rules import parse_amount


LISTING_STATUSES = [s.value for s in ListingStatus]
_TEXT_FIELDS = ("title", "address", "description")


def normalize_amenities(amenities: Optional[Iterable[str]]) -> List[str]:
    """Trim, drop empties, de-duplicate and sort."""
    if amenities is None:
        return []
    if isinstance(amenities, str):
        amenities = [amenities]
    return sorted({a.strip() for a in amenities if isinstance(a, str) and a.strip()})


def normalize_images(images: Optional[Iterable[str]]) -> List[str]:
    if images is None:
        return []
    if isinstance(images, str):
        images = [images]
    return [i.strip() for i in images if isinstance(i, str) and i.strip()]


def _require_text(value: Any, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _require_price(value: Any) -> float:
    return parse_amount(value, "price")


def _require_status(value: Any) -> str:
    status = value.value if hasattr(value, "value") else str(value)
    if status not in LISTING_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(LISTING_STATUSES)}")
    return status


def serialize_listing(row: sqlite3.Row) -> Dict[str, Any]:
    data = dict(row)
    data["amenities"] = json.loads(data.pop("amenities_json") or "[]")
    data["images"] = json.loads(data.pop("images_json") or "[]")
    return data


def create_listing(
    conn: sqlite3.Connection,
    owner_id: int,
    title: Optional[str],
    address: Optional[str],
    description: Optional[str],
    price: Any,
    amenities: Optional[Iterable[str]] = None,
    images: Optional[Iterable[str]] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    title = _require_text(title, "title")
    address = _require_text(address, "address")
    description = _require_text(description, "description")
    price = _require_price(price)
    status = _require_status(status) if status else ListingStatus.available.value
    now = now_iso()

    cur = conn.execute(
        """
        INSERT INTO listings (
            owner_id, title, address, description, price,
            amenities_json, images_json, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            owner_id,
            title,
            address,
            description,
            price,
            json.dumps(normalize_amenities(amenities)),
            json.dumps(normalize_images(images)),
            status,
            now,
            now,
        ),
    )
    listing_id = cur.lastrowid
    log_activity(conn, owner_id, ActivityAction.create_listing, f"Listed '{title}' at {address}")

    if IS_DEV:
        print(f"[LISTINGS] Created: id={listing_id}, owner_id={owner_id}")

    return get_listing(conn, owner_id, listing_id)


def get_listing(conn: sqlite3.Connection, owner_id: int, listing_id: int) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM listings WHERE id = ? AND owner_id = ?",
        (listing_id, owner_id),
    ).fetchone()
    if not row:
        raise NotFoundError("Listing not found")
    return serialize_listing(row)


def get_listing_any_owner(conn: sqlite3.Connection, listing_id: int) -> Dict[str, Any]:
    """Lookup without owner scoping, for tenant-facing flows."""
    row = conn.execute("SELECT * FROM listings WHERE id = ?", (listing_id,)).fetchone()
    if not row:
        raise NotFoundError("Listing not found")
    return serialize_listing(row)


def list_listings(conn: sqlite3.Connection, owner_id: int, status: Optional[str] = None) -> List[Dict[str, Any]]:
    if status:
        rows = conn.execute(
            "SELECT * FROM listings WHERE owner_id = ? AND status = ? ORDER BY created_at DESC, id DESC",
            (owner_id, _require_status(status)),
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM listings WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        ).fetchall()
    return [serialize_listing(r) for r in rows]


def list_available(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """Listings tenants may book, across all owners."""
    rows = conn.execute(
        "SELECT * FROM listings WHERE status = ? ORDER BY created_at DESC, id DESC",
        (ListingStatus.available.value,),
    ).fetchall()
    return [serialize_listing(r) for r in rows]


def update_listing(
    conn: sqlite3.Connection,
    owner_id: int,
    listing_id: int,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Apply a partial update. Only keys present in `changes` are touched;
    explicit empty amenity or image lists are allowed.
    """
    current = get_listing(conn, owner_id, listing_id)

    sets: List[str] = []
    params: List[Any] = []
    for field in _TEXT_FIELDS:
        if field in changes:
            sets.append(f"{field} = ?")
            params.append(_require_text(changes[field], field))
    if "price" in changes:
        sets.append("price = ?")
        params.append(_require_price(changes["price"]))
    if "amenities" in changes:
        sets.append("amenities_json = ?")
        params.append(json.dumps(normalize_amenities(changes["amenities"])))
    if "images" in changes:
        sets.append("images_json = ?")
        params.append(json.dumps(normalize_images(changes["images"])))
    if "status" in changes and changes["status"] is not None:
        sets.append("status = ?")
        params.append(_require_status(changes["status"]))

    if not sets:
        return current

    sets.append("updated_at = ?")
    params.append(now_iso())
    params.extend([listing_id, owner_id])
    conn.execute(
        f"UPDATE listings SET {', '.join(sets)} WHERE id = ? AND owner_id = ?",
        params,
    )
    log_activity(conn, owner_id, ActivityAction.update_listing, f"Updated '{current['title']}'")
    return get_listing(conn, owner_id, listing_id)


def delete_listing(conn: sqlite3.Connection, owner_id: int, listing_id: int) -> None:
    listing = get_listing(conn, owner_id, listing_id)
    lease_count = conn.execute(
        "SELECT COUNT(*) FROM leases WHERE listing_id = ?", (listing_id,)
    ).fetchone()[0]
    if lease_count:
        raise ConflictError("Listing has leases; delete them before deleting the listing")

    conn.execute("DELETE FROM listings WHERE id = ? AND owner_id = ?", (listing_id, owner_id))
    log_activity(conn, owner_id, ActivityAction.delete_listing, f"Deleted '{listing['title']}'")


def set_listing_status(
    conn: sqlite3.Connection,
    listing_id: int,
    status: str,
    only_from: Optional[str] = None,
) -> bool:
    """
    Lifecycle side effect; no activity entry of its own.

    With only_from, the listing changes only while it is in that status.
    Returns whether a row changed.
    """
    query = "UPDATE listings SET status = ?, updated_at = ? WHERE id = ?"
    params: List[Any] = [_require_status(status), now_iso(), listing_id]
    if only_from is not None:
        query += " AND status = ?"
        params.append(_require_status(only_from))
    return conn.execute(query, params).rowcount > 0


def status_counts(conn: sqlite3.Connection, owner_id: int) -> Dict[str, int]:
    counts = {s: 0 for s in LISTING_STATUSES}
    rows = conn.execute(
        "SELECT status, COUNT(*) AS n FROM listings WHERE owner_id = ? GROUP BY status",
        (owner_id,),
    ).fetchall()
    for row in rows:
        counts[row["status"]] = row["n"]
    counts["total"] = sum(counts[s] for s in LISTING_STATUSES)
    return counts


def count_added_this_month(conn: sqlite3.Connection, owner_id: int, today: Optional[date] = None) -> int:
    # created_at is UTC
    today = today or datetime.utcnow().date()
    month_prefix = today.strftime("%Y-%m")
    return conn.execute(
        "SELECT COUNT(*) FROM listings WHERE owner_id = ? AND substr(created_at, 1, 7) = ?",
        (owner_id, month_prefix),
    ).fetchone()[0]
