# backend/activity.py
# Activity feed: one row per admin-visible change

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

try:
    from backend.db import now_iso, rows_to_dicts
    from backend.models import ActivityAction
except ModuleNotFoundError:
    from db import now_iso, rows_to_dicts
    from models import ActivityAction

DEFAULT_LIMIT = 3
MAX_LIMIT = 50


def log_activity(conn: sqlite3.Connection, admin_id: int, action: str, detail: str) -> None:
    """Insert an activity entry. The caller owns the transaction."""
    action_value = action.value if isinstance(action, ActivityAction) else str(action)
    conn.execute(
        "INSERT INTO activity_logs (admin_id, action, detail, created_at) VALUES (?, ?, ?, ?)",
        (admin_id, action_value, detail, now_iso()),
    )


def recent_activity(conn: sqlite3.Connection, admin_id: int, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    limit = max(1, min(int(limit), MAX_LIMIT))
    rows = conn.execute(
        """
        SELECT id, action, detail, created_at
        FROM activity_logs
        WHERE admin_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT ?
        """,
        (admin_id, limit),
    ).fetchall()
    return rows_to_dicts(rows)
