"""
backend/routes_listings.py

Listing CRUD endpoints with owner-scoped queries and RBAC enforcement.

Security guarantees:
- All endpoints require authentication (require_auth_context)
- Admin endpoints require capability "listing:manage"
- Tenants may only browse Available listings ("listing:view")
- owner_id always comes from the auth context, never from the client
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query

try:
    from backend import listings
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_listings import (
        ListingCreateRequest,
        ListingListResponse,
        ListingResponse,
        ListingUpdateRequest,
    )
except ModuleNotFoundError:
    import listings
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_listings import (
        ListingCreateRequest,
        ListingListResponse,
        ListingResponse,
        ListingUpdateRequest,
    )


router = APIRouter(
    prefix="/api/listings",
    tags=["listings"],
)


@router.post("", response_model=ListingResponse, status_code=201,
             dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def create_listing(
    request: ListingCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> ListingResponse:
    """
    Create a listing owned by the caller.

    Raises:
        ValidationError(400): Empty title/address/description or price <= 0
        HTTPException(403): Missing capability (handled by dependency)
    """
    with db_session() as conn:
        listing = listings.create_listing(
            conn,
            ctx.user_id,
            title=request.title,
            address=request.address,
            description=request.description,
            price=request.price,
            amenities=request.amenities,
            images=request.images,
            status=request.status.value,
        )
    return ListingResponse(**listing)


@router.get("", response_model=ListingListResponse,
            dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def list_listings(
    status: Optional[str] = Query(None, description="Filter by status"),
    ctx: AuthContext = Depends(require_auth_context),
) -> ListingListResponse:
    with db_session() as conn:
        items = listings.list_listings(conn, ctx.user_id, status)
    return ListingListResponse(items=[ListingResponse(**i) for i in items], total=len(items))


@router.get("/available", response_model=ListingListResponse,
            dependencies=[Depends(require_capability(Capability.LISTING_VIEW))])
def list_available_listings() -> ListingListResponse:
    """Listings open for booking, across all owners."""
    with db_session() as conn:
        items = listings.list_available(conn)
    return ListingListResponse(items=[ListingResponse(**i) for i in items], total=len(items))


@router.get("/status-counts",
            dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def listing_status_counts(ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    with db_session() as conn:
        counts = listings.status_counts(conn, ctx.user_id)
        counts["added_this_month"] = listings.count_added_this_month(conn, ctx.user_id)
    return counts


@router.get("/{listing_id}", response_model=ListingResponse,
            dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def get_listing(
    listing_id: int = Path(..., description="Listing ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> ListingResponse:
    with db_session() as conn:
        listing = listings.get_listing(conn, ctx.user_id, listing_id)
    return ListingResponse(**listing)


@router.patch("/{listing_id}", response_model=ListingResponse,
              dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def update_listing(
    request: ListingUpdateRequest,
    listing_id: int = Path(..., description="Listing ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> ListingResponse:
    """Partial update; fields absent from the body are left untouched."""
    changes = request.model_dump(exclude_unset=True)
    with db_session() as conn:
        listing = listings.update_listing(conn, ctx.user_id, listing_id, changes)
    return ListingResponse(**listing)


@router.delete("/{listing_id}",
               dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
def delete_listing(
    listing_id: int = Path(..., description="Listing ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with db_session() as conn:
        listings.delete_listing(conn, ctx.user_id, listing_id)
    return {"deleted": True, "id": listing_id}
