# backend/reviews.py
# Tenant reviews of places they have stayed, and the owner's review feed

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

try:
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict, rows_to_dicts
    from backend.errors import ConflictError, NotFoundError, ValidationError
    from backend.listings import get_listing_any_owner
    from backend.maintenance import tenant_has_stay
except ModuleNotFoundError:
    from config import IS_DEV
    from db import now_iso, row_to_dict, rows_to_dicts
    from errors import ConflictError, NotFoundError, ValidationError
    from listings import get_listing_any_owner
    from maintenance import tenant_has_stay


_REVIEW_SELECT = """
    SELECT r.*, u.name AS tenant_name, l.title AS listing_title
    FROM reviews r
    JOIN listings l ON l.id = r.listing_id
    JOIN users u ON u.id = r.tenant_id
"""


def create_review(
    conn: sqlite3.Connection,
    tenant_id: int,
    listing_id: int,
    rating: Any,
    comment: Optional[str] = "",
) -> Dict[str, Any]:
    """
    Record a tenant's review. One review per tenant and listing, and only
    for a listing the tenant has booked or leased.
    """
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("rating must be a whole number from 1 to 5")
    if not 1 <= rating <= 5:
        raise ValidationError("rating must be a whole number from 1 to 5")

    get_listing_any_owner(conn, listing_id)
    if not tenant_has_stay(conn, tenant_id, listing_id):
        raise ValidationError("You can only review a property you have booked or leased")
    exists = conn.execute(
        "SELECT 1 FROM reviews WHERE listing_id = ? AND tenant_id = ?",
        (listing_id, tenant_id),
    ).fetchone()
    if exists:
        raise ConflictError("You have already reviewed this property")

    cur = conn.execute(
        "INSERT INTO reviews (listing_id, tenant_id, rating, comment, created_at) VALUES (?, ?, ?, ?, ?)",
        (listing_id, tenant_id, rating, (comment or "").strip(), now_iso()),
    )
    if IS_DEV:
        print(f"[REVIEWS] Created: id={cur.lastrowid}, listing_id={listing_id}, rating={rating}")

    row = conn.execute(_REVIEW_SELECT + " WHERE r.id = ?", (cur.lastrowid,)).fetchone()
    if not row:
        raise NotFoundError("Review not found")
    return row_to_dict(row)


def admin_reviews(
    conn: sqlite3.Connection,
    admin_id: int,
    listing_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Reviews on the admin's listings, newest first, with the average rating."""
    params: List[Any] = [admin_id]
    query = _REVIEW_SELECT + " WHERE l.owner_id = ?"
    if listing_id is not None:
        query += " AND r.listing_id = ?"
        params.append(listing_id)
    query += " ORDER BY r.created_at DESC, r.id DESC"
    items = rows_to_dicts(conn.execute(query, params).fetchall())

    average = None
    if items:
        average = round(sum(r["rating"] for r in items) / len(items), 1)
    return {"items": items, "total": len(items), "average_rating": average}
