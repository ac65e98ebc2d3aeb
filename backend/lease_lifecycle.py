"""
backend/lease_lifecycle.py

Lease lifecycle state machine.

    Pending --Activate--> Active --Cancel--> Cancelled
    Active --(time)--> Expiring Soon --(time)--> Expired
    Expiring Soon / Expired --Renew--> Active (new date range)

TRANSITIONS is the single source of truth for explicit actions. Time-based
moves come from evaluate_status(), which only ever moves a lease forward.

Pure Python logic - no FastAPI imports, no database access. leases.py does
the persistence and side effects.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

try:
    from backend import config
    from backend.errors import InvalidTransitionError, ValidationError
    from backend.models import LeaseAction, LeaseStatus
    from backend.status_rules import DateLike, parse_date
except ModuleNotFoundError:
    import config
    from errors import InvalidTransitionError, ValidationError
    from models import LeaseAction, LeaseStatus
    from status_rules import DateLike, parse_date


TRANSITIONS: Dict[Tuple[str, str], str] = {
    (LeaseStatus.pending.value, LeaseAction.activate.value): LeaseStatus.active.value,
    (LeaseStatus.active.value, LeaseAction.cancel.value): LeaseStatus.cancelled.value,
    (LeaseStatus.expiring_soon.value, LeaseAction.renew.value): LeaseStatus.active.value,
    (LeaseStatus.expired.value, LeaseAction.renew.value): LeaseStatus.active.value,
}

# Leases that still occupy their listing
OCCUPYING_STATUSES = (LeaseStatus.active.value, LeaseStatus.expiring_soon.value)

# Leases the time-based refresh looks at
OPEN_STATUSES = (
    LeaseStatus.pending.value,
    LeaseStatus.active.value,
    LeaseStatus.expiring_soon.value,
)

# Forward order for time-based moves
_PROGRESS = {
    LeaseStatus.pending.value: 0,
    LeaseStatus.active.value: 1,
    LeaseStatus.expiring_soon.value: 2,
    LeaseStatus.expired.value: 3,
}


def _value(x: Any) -> str:
    return x.value if hasattr(x, "value") else str(x)


def allowed_actions(status: str) -> List[str]:
    """Actions permitted from `status`, in LeaseAction declaration order."""
    current = _value(status)
    return [a.value for a in LeaseAction if (current, a.value) in TRANSITIONS]


def next_status(status: str, action: str) -> str:
    """
    Resolve the status an explicit action leads to.

    Raises:
        ValidationError: Unknown action name
        InvalidTransitionError: Action not permitted from `status`
    """
    current = _value(status)
    action_value = _value(action)
    if action_value not in {a.value for a in LeaseAction}:
        raise ValidationError(f"Unknown lease action '{action_value}'")
    target = TRANSITIONS.get((current, action_value))
    if target is None:
        raise InvalidTransitionError(current, action_value)
    return target


def validate_renewal(
    current_start: DateLike,
    new_end: Optional[DateLike],
    today: date,
    new_start: Optional[DateLike] = None,
) -> Tuple[date, date]:
    """
    Check the date range for a Renew.

    new_end is required; new_start defaults to the lease's current start.
    The end must be after the start and must not be in the past.
    """
    if new_end is None or new_end == "":
        raise ValidationError("end_date is required to renew a lease")
    start = parse_date(new_start if new_start else current_start, "start_date")
    end = parse_date(new_end, "end_date")
    if end <= start:
        raise ValidationError("end_date must be after start_date")
    if end < today:
        raise ValidationError("end_date cannot be in the past")
    return start, end


def evaluate_status(
    lease: Mapping[str, Any],
    today: date,
    expiring_soon_days: Optional[int] = None,
) -> str:
    """
    Time-based status for a lease as of `today`.

    Active becomes Expiring Soon once end_date - today <= the window;
    Pending, Active and Expiring Soon become Expired once end_date < today.
    Cancelled and Expired are returned unchanged, and the result is never
    behind the current status.
    """
    current = _value(lease["status"])
    if current not in OPEN_STATUSES:
        return current

    window = config.EXPIRING_SOON_DAYS if expiring_soon_days is None else expiring_soon_days
    end = parse_date(lease["end_date"], "end_date")

    if end < today:
        candidate = LeaseStatus.expired.value
    elif current == LeaseStatus.active.value and (end - today).days <= window:
        candidate = LeaseStatus.expiring_soon.value
    else:
        candidate = current

    if _PROGRESS[candidate] < _PROGRESS[current]:
        return current
    return candidate
