"""
backend/errors.py

Domain error taxonomy for RentWise.

Service modules raise these plain exceptions (no FastAPI imports there);
main.py registers a single handler that maps them to HTTP responses.
"""

from __future__ import annotations


class RentWiseError(Exception):
    """Base class for expected, user-facing failures."""
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RentWiseError):
    """A required field is missing or a value is out of range."""
    status_code = 400
    code = "validation_error"


class AuthError(RentWiseError):
    """Invalid credentials, session or reset token."""
    status_code = 401
    code = "auth_error"


class NotFoundError(RentWiseError):
    """Referenced entity is absent (or belongs to someone else)."""
    status_code = 404
    code = "not_found"


class ConflictError(RentWiseError):
    """Duplicate entity, e.g. a booking that already has a lease."""
    status_code = 409
    code = "conflict"


class InvalidTransitionError(RentWiseError):
    """Requested status change is not allowed from the current status."""
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current_status: str, action: str, entity: str = "lease"):
        super().__init__(f"Cannot {action} a {entity} in status '{current_status}'")
        self.current_status = current_status
        self.action = action
        self.entity = entity
