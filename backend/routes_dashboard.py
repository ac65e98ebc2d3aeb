"""
backend/routes_dashboard.py

Dashboard overview and activity feed for admins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

try:
    from backend import activity, bookings, invoices, leases, listings
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_maintenance import ActivityEntry, ActivityListResponse, DashboardOverview
except ModuleNotFoundError:
    import activity, bookings, invoices, leases, listings
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_maintenance import ActivityEntry, ActivityListResponse, DashboardOverview


router = APIRouter(
    prefix="/api",
    tags=["dashboard"],
    dependencies=[Depends(require_capability(Capability.DASHBOARD_VIEW))],
)


@router.get("/dashboard/overview", response_model=DashboardOverview)
def dashboard_overview(ctx: AuthContext = Depends(require_auth_context)) -> DashboardOverview:
    with db_session() as conn:
        counts = listings.status_counts(conn, ctx.user_id)
        total = counts.pop("total")
        lease_stats = leases.lease_stats(conn, ctx.user_id)
        overview = DashboardOverview(
            total_listings=total,
            listings_by_status=counts,
            listings_added_this_month=listings.count_added_this_month(conn, ctx.user_id),
            active_leases=lease_stats["active_leases"],
            leased_percentage=lease_stats["leased_percentage"],
            current_month_revenue=bookings.current_month_revenue(conn, ctx.user_id),
            invoice_stats=invoices.invoice_stats(conn, ctx.user_id),
        )
    return overview


@router.get("/activity", response_model=ActivityListResponse)
def recent_activity(
    limit: int = Query(activity.DEFAULT_LIMIT, ge=1, le=activity.MAX_LIMIT),
    ctx: AuthContext = Depends(require_auth_context),
) -> ActivityListResponse:
    with db_session() as conn:
        items = activity.recent_activity(conn, ctx.user_id, limit)
    return ActivityListResponse(items=[ActivityEntry(**i) for i in items])
