"""
backend/status_rules.py

Date-driven and action-driven status rules for bookings, invoices and
maintenance requests. Lease rules live in lease_lifecycle.py.

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Set, Union

try:
    from backend.errors import InvalidTransitionError, ValidationError
    from backend.models import (
        BookingAction,
        BookingStatus,
        InvoiceStatus,
        MaintenanceStatus,
    )
except ModuleNotFoundError:
    from errors import InvalidTransitionError, ValidationError
    from models import (
        BookingAction,
        BookingStatus,
        InvoiceStatus,
        MaintenanceStatus,
    )


DateLike = Union[date, str]


def parse_date(value: Optional[DateLike], field: str = "date") -> date:
    """
    Parse an ISO YYYY-MM-DD value (or pass a date through).

    Raises:
        ValidationError: If the value is missing or not a valid date
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"{field} must be a valid date (YYYY-MM-DD)")


def parse_amount(value: Any, field: str = "amount") -> float:
    """Parse a money amount; it must be a finite number greater than 0."""
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


# ---------------------------------------------------------
# Bookings
# ---------------------------------------------------------
BOOKING_TRANSITIONS: Dict[str, Set[str]] = {
    BookingStatus.pending.value: {BookingStatus.confirmed.value, BookingStatus.cancelled.value},
    BookingStatus.confirmed.value: {BookingStatus.active.value, BookingStatus.cancelled.value},
    BookingStatus.active.value: {
        BookingStatus.expired.value,
        BookingStatus.completed.value,
        BookingStatus.cancelled.value,
    },
    BookingStatus.expired.value: {BookingStatus.completed.value},
    BookingStatus.completed.value: set(),
    BookingStatus.cancelled.value: set(),
}

BOOKING_ACTION_TARGETS: Dict[str, str] = {
    BookingAction.confirm.value: BookingStatus.confirmed.value,
    BookingAction.cancel.value: BookingStatus.cancelled.value,
    BookingAction.complete.value: BookingStatus.completed.value,
}

# Bookings in these statuses count towards revenue
REVENUE_BOOKING_STATUSES = (
    BookingStatus.confirmed.value,
    BookingStatus.active.value,
    BookingStatus.expired.value,
    BookingStatus.completed.value,
)


def can_transition_booking(current: str, target: str) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


def apply_booking_action(current: str, action: str) -> str:
    """Return the status a booking action leads to, or raise InvalidTransitionError."""
    action_value = action.value if isinstance(action, BookingAction) else str(action)
    target = BOOKING_ACTION_TARGETS.get(action_value)
    if target is None:
        raise ValidationError(f"Unknown booking action '{action_value}'")
    if not can_transition_booking(current, target):
        raise InvalidTransitionError(current, action_value, entity="booking")
    return target


def allowed_booking_actions(current: str) -> List[str]:
    """Admin actions valid from the current booking status, in table order."""
    return [
        action
        for action, target in BOOKING_ACTION_TARGETS.items()
        if can_transition_booking(current, target)
    ]


def booking_status_for_date(current: str, check_in: DateLike, check_out: DateLike, today: date) -> str:
    """
    Date-driven booking status.

    Cancelled and Completed never change. Once check-out has passed the
    booking is Expired; once check-in is reached it is Active. Before
    check-in the current status (Pending or Confirmed) is kept.
    """
    if current in (BookingStatus.cancelled.value, BookingStatus.completed.value):
        return current
    if current == BookingStatus.expired.value:
        return current

    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")

    if end < today:
        return BookingStatus.expired.value
    if start <= today:
        return BookingStatus.active.value
    return current


# ---------------------------------------------------------
# Invoices
# ---------------------------------------------------------
def invoice_status_for_date(current: str, due_date: DateLike, today: date) -> str:
    """Paid is sticky; otherwise Overdue once the due date has passed, else Pending."""
    if current == InvoiceStatus.paid.value:
        return current
    if parse_date(due_date, "due_date") < today:
        return InvoiceStatus.overdue.value
    return InvoiceStatus.pending.value


# ---------------------------------------------------------
# Maintenance requests
# ---------------------------------------------------------
MAINTENANCE_TRANSITIONS: Dict[str, Set[str]] = {
    MaintenanceStatus.pending.value: {
        MaintenanceStatus.in_progress.value,
        MaintenanceStatus.cancelled.value,
    },
    MaintenanceStatus.in_progress.value: {
        MaintenanceStatus.completed.value,
        MaintenanceStatus.cancelled.value,
    },
    MaintenanceStatus.completed.value: set(),
    MaintenanceStatus.cancelled.value: set(),
}


def check_maintenance_transition(current: str, target: str) -> None:
    if current == target:
        return
    if target not in MAINTENANCE_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current, f"move to '{target}'", entity="maintenance request")
