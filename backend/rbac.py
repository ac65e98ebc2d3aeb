"""
backend/rbac.py

Role-Based Access Control (RBAC) for capability-based authorization.

RentWise has two roles: admins (landlords) manage listings, bookings,
leases, invoices, maintenance and caretakers and read reviews; tenants
browse listings, book them, file maintenance requests and review places
they have stayed.

Pure Python logic - no FastAPI imports, no database access.
"""

from enum import Enum
from typing import Set


class Capability(str, Enum):
    """Available capabilities in the RentWise platform."""

    LISTING_MANAGE = "listing:manage"
    LISTING_VIEW = "listing:view"

    BOOKING_CREATE = "booking:create"
    BOOKING_MANAGE = "booking:manage"
    BOOKING_VIEW = "booking:view"

    LEASE_MANAGE = "lease:manage"
    LEASE_VIEW = "lease:view"

    INVOICE_MANAGE = "invoice:manage"

    MAINTENANCE_CREATE = "maintenance:create"
    MAINTENANCE_MANAGE = "maintenance:manage"

    REVIEW_CREATE = "review:create"
    REVIEW_VIEW = "review:view"

    DASHBOARD_VIEW = "dashboard:view"


class Role:
    """Role constants for RBAC."""
    ADMIN = "admin"
    TENANT = "tenant"


ROLE_CAPABILITIES: dict[str, Set[str]] = {
    "admin": {
        Capability.LISTING_MANAGE,
        Capability.LISTING_VIEW,
        Capability.BOOKING_MANAGE,
        Capability.BOOKING_VIEW,
        Capability.LEASE_MANAGE,
        Capability.LEASE_VIEW,
        Capability.INVOICE_MANAGE,
        Capability.MAINTENANCE_MANAGE,
        Capability.REVIEW_VIEW,
        Capability.DASHBOARD_VIEW,
    },
    "tenant": {
        Capability.LISTING_VIEW,
        Capability.BOOKING_CREATE,
        Capability.BOOKING_VIEW,
        Capability.LEASE_VIEW,
        Capability.MAINTENANCE_CREATE,
        Capability.REVIEW_CREATE,
    },
}


def effective_capabilities(role: str) -> Set[str]:
    """
    Return the capability strings granted to a role.

    Args:
        role: User role ("admin" or "tenant"), case-insensitive

    Returns:
        Set of capability values. Empty set for unknown roles.
    """
    role_lower = role.lower() if role else ""
    return {c.value for c in ROLE_CAPABILITIES.get(role_lower, set())}


def has_capability(role: str, capability: str) -> bool:
    """Check whether a role grants a capability (accepts enum or raw string)."""
    value = capability.value if isinstance(capability, Capability) else capability
    return value in effective_capabilities(role)
