"""
backend/routes_bookings.py

Booking endpoints. Tenants create and read their own bookings; admins read,
act on and delete bookings made against their listings.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query

try:
    from backend import bookings
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_leasing import (
        BookingActionRequest,
        BookingCreateRequest,
        BookingListResponse,
        BookingResponse,
        RefreshResponse,
    )
except ModuleNotFoundError:
    import bookings
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_leasing import (
        BookingActionRequest,
        BookingCreateRequest,
        BookingListResponse,
        BookingResponse,
        RefreshResponse,
    )


router = APIRouter(
    prefix="/api/bookings",
    tags=["bookings"],
)


@router.post("", response_model=BookingResponse, status_code=201,
             dependencies=[Depends(require_capability(Capability.BOOKING_CREATE))])
def create_booking(
    request: BookingCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> BookingResponse:
    with db_session() as conn:
        booking = bookings.create_booking(
            conn,
            ctx.user_id,
            request.listing_id,
            request.check_in,
            request.check_out,
            guests=request.guests,
            rent_amount=request.rent_amount,
        )
    return BookingResponse(**booking)


@router.get("", response_model=BookingListResponse,
            dependencies=[Depends(require_capability(Capability.BOOKING_VIEW))])
def list_bookings(
    status: Optional[str] = Query(None, description="Filter by status"),
    ctx: AuthContext = Depends(require_auth_context),
) -> BookingListResponse:
    with db_session() as conn:
        items = bookings.list_bookings(conn, ctx.user_id, ctx.is_admin, status)
    return BookingListResponse(items=[BookingResponse(**i) for i in items], total=len(items))


@router.patch("/refresh-statuses", response_model=RefreshResponse,
              dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def refresh_booking_statuses(ctx: AuthContext = Depends(require_auth_context)) -> RefreshResponse:
    with db_session() as conn:
        updated = bookings.refresh_booking_statuses(conn, ctx.user_id, True)
    return RefreshResponse(updated=updated)


@router.get("/revenue/current-month",
            dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def current_month_revenue(ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    with db_session() as conn:
        return bookings.current_month_revenue(conn, ctx.user_id)


@router.get("/revenue/monthly",
            dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def monthly_revenue(
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    month: Optional[int] = Query(None, description="1-12, defaults to the current month"),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    """Revenue and revenue-bearing bookings for one calendar month."""
    today = date.today()
    with db_session() as conn:
        return bookings.monthly_revenue(
            conn,
            ctx.user_id,
            year if year is not None else today.year,
            month if month is not None else today.month,
        )


@router.get("/revenue/trend",
            dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def revenue_trend(
    months: int = Query(bookings.TREND_MONTHS, ge=1, le=bookings.MAX_TREND_MONTHS),
    ctx: AuthContext = Depends(require_auth_context),
) -> List[Dict[str, Any]]:
    """Per-month revenue, oldest first, ending with the current month."""
    with db_session() as conn:
        return bookings.revenue_trend(conn, ctx.user_id, months)


@router.get("/{booking_id}", response_model=BookingResponse,
            dependencies=[Depends(require_capability(Capability.BOOKING_VIEW))])
def get_booking(
    booking_id: int = Path(..., description="Booking ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> BookingResponse:
    with db_session() as conn:
        booking = bookings.get_booking(conn, ctx.user_id, ctx.is_admin, booking_id)
    return BookingResponse(**booking)


@router.post("/{booking_id}/actions", response_model=BookingResponse,
             dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def booking_action(
    request: BookingActionRequest,
    booking_id: int = Path(..., description="Booking ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> BookingResponse:
    """
    Confirm, cancel or complete a booking.

    Raises:
        InvalidTransitionError(409): Action not allowed from the current status
    """
    with db_session() as conn:
        booking = bookings.apply_action(conn, ctx.user_id, booking_id, request.action.value)
    return BookingResponse(**booking)


@router.delete("/{booking_id}",
               dependencies=[Depends(require_capability(Capability.BOOKING_MANAGE))])
def delete_booking(
    booking_id: int = Path(..., description="Booking ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with db_session() as conn:
        bookings.delete_booking(conn, ctx.user_id, booking_id)
    return {"deleted": True, "id": booking_id}
