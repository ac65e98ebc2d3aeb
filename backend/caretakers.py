"""
backend/caretakers.py

An admin's roster of caretakers (plumbers, electricians, ...). Assigning
one to a maintenance request lives in maintenance.py.
"""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Dict, List, Optional

try:
    from backend.activity import log_activity
    from backend.config import IS_DEV
    from backend.db import now_iso, row_to_dict, rows_to_dicts
    from backend.errors import ConflictError, NotFoundError, ValidationError
    from backend.models import ActivityAction, MaintenanceStatus
    from backend.schemas_auth import is_valid_email, normalize_email
except ModuleNotFoundError:
    from activity import log_activity
    from config import IS_DEV
    from db import now_iso, row_to_dict, rows_to_dicts
    from errors import ConflictError, NotFoundError, ValidationError
    from models import ActivityAction, MaintenanceStatus
    from schemas_auth import is_valid_email, normalize_email


# Digits with optional leading +, spaces, dashes and brackets
PHONE_PATTERN = re.compile(r"^\+?[0-9 ()\-]{7,20}$")
CLOSED_STATUSES = (MaintenanceStatus.completed.value, MaintenanceStatus.cancelled.value)


def full_name(caretaker: Dict[str, Any]) -> str:
    return f"{caretaker['first_name']} {caretaker['surname']}"


def _required(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def is_valid_phone(phone: str) -> bool:
    if not PHONE_PATTERN.match(phone or ""):
        return False
    return sum(ch.isdigit() for ch in phone) >= 7


def get_caretaker(conn: sqlite3.Connection, admin_id: int, caretaker_id: int) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM caretakers WHERE id = ? AND admin_id = ?",
        (caretaker_id, admin_id),
    ).fetchone()
    if not row:
        raise NotFoundError("Caretaker not found")
    return row_to_dict(row)


def create_caretaker(
    conn: sqlite3.Connection,
    admin_id: int,
    first_name: Optional[str],
    surname: Optional[str],
    email: Optional[str],
    phone_number: Optional[str],
    profession: Optional[str],
) -> Dict[str, Any]:
    first_name = _required(first_name, "first_name")
    surname = _required(surname, "surname")
    email = normalize_email(_required(email, "email"))
    if not is_valid_email(email):
        raise ValidationError("Invalid email address")
    phone_number = _required(phone_number, "phone_number")
    if not is_valid_phone(phone_number):
        raise ValidationError("Invalid phone number")
    profession = _required(profession, "profession")

    exists = conn.execute(
        "SELECT 1 FROM caretakers WHERE admin_id = ? AND email = ?",
        (admin_id, email),
    ).fetchone()
    if exists:
        raise ConflictError("A caretaker with this email already exists")

    cur = conn.execute(
        """
        INSERT INTO caretakers (
            admin_id, first_name, surname, email, phone_number, profession, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (admin_id, first_name, surname, email, phone_number, profession, now_iso()),
    )
    caretaker = get_caretaker(conn, admin_id, cur.lastrowid)
    log_activity(
        conn,
        admin_id,
        ActivityAction.create_caretaker,
        f"Added caretaker {full_name(caretaker)} ({profession})",
    )

    if IS_DEV:
        print(f"[CARETAKERS] Created: id={caretaker['id']}, admin_id={admin_id}")
    return caretaker


def list_caretakers(conn: sqlite3.Connection, admin_id: int) -> List[Dict[str, Any]]:
    """Caretakers with how many open requests each is assigned to."""
    rows = conn.execute(
        """
        SELECT c.*,
               (SELECT COUNT(*) FROM maintenance_requests m
                WHERE m.caretaker_id = c.id AND m.status NOT IN (?, ?)) AS open_requests
        FROM caretakers c
        WHERE c.admin_id = ?
        ORDER BY c.surname, c.first_name, c.id
        """,
        (*CLOSED_STATUSES, admin_id),
    ).fetchall()
    return rows_to_dicts(rows)


def delete_caretaker(conn: sqlite3.Connection, admin_id: int, caretaker_id: int) -> None:
    """
    Remove a caretaker. Open requests assigned to them lose the assignment;
    closed requests keep the caretaker's name for the record.
    """
    caretaker = get_caretaker(conn, admin_id, caretaker_id)
    conn.execute(
        """
        UPDATE maintenance_requests SET caretaker = NULL, updated_at = ?
        WHERE caretaker_id = ? AND status NOT IN (?, ?)
        """,
        (now_iso(), caretaker_id, *CLOSED_STATUSES),
    )
    # caretaker_id is cleared by ON DELETE SET NULL
    conn.execute("DELETE FROM caretakers WHERE id = ? AND admin_id = ?", (caretaker_id, admin_id))
    log_activity(conn, admin_id, ActivityAction.delete_caretaker, f"Removed caretaker {full_name(caretaker)}")

