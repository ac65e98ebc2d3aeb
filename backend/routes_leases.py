"""
backend/routes_leases.py

Lease endpoints: create from a booking, read, lifecycle transitions,
status refresh, stats and delete.

Every lease in a response carries `allowed_actions`, computed from the
lifecycle table, so clients never re-derive the state machine.

Security guarantees:
- Writes require capability "lease:manage"
- All queries are filtered by admin_id from the auth context
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query

try:
    from backend import leases
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_leasing import (
        LeaseCreateRequest,
        LeaseListResponse,
        LeaseResponse,
        LeaseStatsResponse,
        LeaseTransitionRequest,
        RefreshResponse,
    )
except ModuleNotFoundError:
    import leases
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_leasing import (
        LeaseCreateRequest,
        LeaseListResponse,
        LeaseResponse,
        LeaseStatsResponse,
        LeaseTransitionRequest,
        RefreshResponse,
    )


router = APIRouter(
    prefix="/api/leases",
    tags=["leases"],
)


@router.post("", response_model=LeaseResponse, status_code=201,
             dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def create_lease(
    request: LeaseCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> LeaseResponse:
    """
    Create a Pending lease from a booking.

    Raises:
        NotFoundError(404): Booking missing or not on the caller's listings
        ConflictError(409): Booking already leased or cancelled
    """
    with db_session() as conn:
        lease = leases.create_lease(conn, ctx.user_id, request.booking_id)
    return LeaseResponse(**lease)


@router.get("", response_model=LeaseListResponse,
            dependencies=[Depends(require_capability(Capability.LEASE_VIEW))])
def list_leases(
    status: Optional[str] = Query(None, description="Filter by status"),
    ctx: AuthContext = Depends(require_auth_context),
) -> LeaseListResponse:
    """Admins see the leases they own; tenants see the leases they hold."""
    scope = "admin_id" if ctx.is_admin else "tenant_id"
    with db_session() as conn:
        items = leases.list_leases(conn, ctx.user_id, status, scope=scope)
    return LeaseListResponse(items=[LeaseResponse(**i) for i in items], total=len(items))


@router.get("/stats", response_model=LeaseStatsResponse,
            dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def lease_stats(ctx: AuthContext = Depends(require_auth_context)) -> LeaseStatsResponse:
    with db_session() as conn:
        stats = leases.lease_stats(conn, ctx.user_id)
    return LeaseStatsResponse(**stats)


@router.patch("/refresh-statuses", response_model=RefreshResponse,
              dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def refresh_lease_statuses(ctx: AuthContext = Depends(require_auth_context)) -> RefreshResponse:
    """Apply time-based status changes (Expiring Soon, Expired) to all open leases."""
    with db_session() as conn:
        updated = leases.refresh_statuses(conn, ctx.user_id)
    return RefreshResponse(updated=updated)


@router.get("/{lease_id}", response_model=LeaseResponse,
            dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def get_lease(
    lease_id: int = Path(..., description="Lease ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> LeaseResponse:
    with db_session() as conn:
        lease = leases.get_lease(conn, ctx.user_id, lease_id)
    return LeaseResponse(**lease)


@router.post("/{lease_id}/transition", response_model=LeaseResponse,
             dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def transition_lease(
    request: LeaseTransitionRequest,
    lease_id: int = Path(..., description="Lease ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> LeaseResponse:
    """
    Apply Activate, Cancel or Renew.

    Raises:
        InvalidTransitionError(409): Action not allowed from the current status
        ValidationError(400): Renew without a valid future end_date
    """
    with db_session() as conn:
        lease = leases.transition_lease(
            conn,
            ctx.user_id,
            lease_id,
            request.action.value,
            start_date=request.start_date,
            end_date=request.end_date,
        )
    return LeaseResponse(**lease)


@router.delete("/{lease_id}",
               dependencies=[Depends(require_capability(Capability.LEASE_MANAGE))])
def delete_lease(
    lease_id: int = Path(..., description="Lease ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with db_session() as conn:
        leases.delete_lease(conn, ctx.user_id, lease_id)
    return {"deleted": True, "id": lease_id}
