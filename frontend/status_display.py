"""
frontend/status_display.py
Status badges and lease and booking action buttons for the dashboard.

Everything here is a lookup table keyed by the backend's status strings, so
pages render by dispatch instead of if/elif chains. Which actions to show
comes from the backend's `allowed_actions` on leases and bookings; this
module only decides how each action looks.

Pure Python - no Streamlit calls, safe to unit test.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Streamlit markdown colour names
UNKNOWN_STYLE = ("⚪", "gray")

STATUS_STYLES: Dict[str, Dict[str, Tuple[str, str]]] = {
    "listing": {
        "Available": ("🟢", "green"),
        "Rented": ("🔵", "blue"),
        "Unavailable": ("⚫", "gray"),
    },
    "booking": {
        "Pending": ("🟡", "orange"),
        "Confirmed": ("🔵", "blue"),
        "Active": ("🟢", "green"),
        "Expired": ("⚫", "gray"),
        "Completed": ("✅", "violet"),
        "Cancelled": ("🔴", "red"),
    },
    "lease": {
        "Pending": ("🟡", "orange"),
        "Active": ("🟢", "green"),
        "Expiring Soon": ("🟠", "orange"),
        "Expired": ("⚫", "gray"),
        "Cancelled": ("🔴", "red"),
    },
    "invoice": {
        "Pending": ("🟡", "orange"),
        "Overdue": ("🔴", "red"),
        "Paid": ("🟢", "green"),
    },
    "maintenance": {
        "Pending": ("🟡", "orange"),
        "In Progress": ("🔵", "blue"),
        "Completed": ("🟢", "green"),
        "Cancelled": ("⚫", "gray"),
    },
    "priority": {
        "Low": ("⚪", "gray"),
        "Medium": ("🔵", "blue"),
        "High": ("🟠", "orange"),
        "Urgent": ("🔴", "red"),
    },
}

# How each lease action is presented. Order here is the button order.
LEASE_ACTION_BUTTONS: Dict[str, Dict[str, Any]] = {
    "Activate": {"label": "Activate", "done": "activated", "icon": "▶️", "type": "primary", "needs_dates": False},
    "Renew": {"label": "Renew", "done": "renewed", "icon": "🔁", "type": "primary", "needs_dates": True},
    "Cancel": {"label": "Cancel lease", "done": "cancelled", "icon": "✖️", "type": "secondary", "needs_dates": False},
}

# How each booking action is presented. Order here is the button order.
BOOKING_ACTION_BUTTONS: Dict[str, Dict[str, Any]] = {
    "confirm": {"label": "Confirm", "done": "confirmed", "icon": "✔️", "type": "primary"},
    "complete": {"label": "Complete", "done": "completed", "icon": "🏁", "type": "secondary"},
    "cancel": {"label": "Cancel", "done": "cancelled", "icon": "✖️", "type": "secondary"},
}


def status_style(entity: str, status: Optional[str]) -> Tuple[str, str]:
    """(icon, colour) for a status; unknown entities/statuses get a neutral style."""
    return STATUS_STYLES.get(entity, {}).get(status or "", UNKNOWN_STYLE)


def status_badge(entity: str, status: Optional[str]) -> str:
    """Markdown badge such as ':green[🟢 Active]'."""
    icon, color = status_style(entity, status)
    return f":{color}[{icon} {status or 'Unknown'}]"


def status_label(entity: str, status: Optional[str]) -> str:
    """Plain-text label for dataframes, where markdown colours don't render."""
    icon, _ = status_style(entity, status)
    return f"{icon} {status or 'Unknown'}"


def lease_action_buttons(allowed_actions: Optional[Iterable[str]]) -> List[Tuple[str, Dict[str, Any]]]:
    """Button specs for the actions the backend allows, in display order."""
    allowed = set(allowed_actions or [])
    return [(action, button) for action, button in LEASE_ACTION_BUTTONS.items() if action in allowed]


def booking_action_buttons(allowed_actions: Optional[Iterable[str]]) -> List[Tuple[str, Dict[str, Any]]]:
    allowed = set(allowed_actions or [])
    return [(action, button) for action, button in BOOKING_ACTION_BUTTONS.items() if action in allowed]


def days_remaining(end_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Days until an ISO end date (negative once past). None if unparseable."""
    if not end_date:
        return None
    try:
        end = date.fromisoformat(end_date[:10])
    except ValueError:
        return None
    return (end - (today or date.today())).days


def lease_term_caption(lease: Dict[str, Any], today: Optional[date] = None) -> str:
    """Short caption under a lease card, driven by its status."""
    status = lease.get("status")
    remaining = days_remaining(lease.get("end_date"), today)
    if status in ("Active", "Expiring Soon") and remaining is not None:
        return f"Ends {lease['end_date']} ({remaining} days left)"
    if status == "Pending":
        return f"Starts {lease.get('start_date')}"
    if status == "Expired":
        return f"Ended {lease.get('end_date')}"
    return f"{lease.get('start_date')} → {lease.get('end_date')}"
