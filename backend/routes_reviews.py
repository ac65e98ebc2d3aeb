"""
backend/routes_reviews.py

Review endpoints. Tenants review places they have stayed ("review:create");
admins read the reviews left on their listings ("review:view").
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

try:
    from backend import reviews
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_listings import ReviewCreateRequest, ReviewListResponse, ReviewResponse
except ModuleNotFoundError:
    import reviews
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_listings import ReviewCreateRequest, ReviewListResponse, ReviewResponse


router = APIRouter(
    prefix="/api/reviews",
    tags=["reviews"],
)


@router.post("", response_model=ReviewResponse, status_code=201,
             dependencies=[Depends(require_capability(Capability.REVIEW_CREATE))])
def create_review(
    request: ReviewCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> ReviewResponse:
    """
    Review a listing the caller has booked or leased.

    Raises:
        ValidationError(400): No booking or lease on the listing
        ConflictError(409): Already reviewed
    """
    with db_session() as conn:
        review = reviews.create_review(
            conn, ctx.user_id, request.listing_id, request.rating, comment=request.comment
        )
    return ReviewResponse(**review)


@router.get("", response_model=ReviewListResponse,
            dependencies=[Depends(require_capability(Capability.REVIEW_VIEW))])
def list_reviews(
    listing_id: Optional[int] = Query(None, description="Only reviews of this listing"),
    ctx: AuthContext = Depends(require_auth_context),
) -> ReviewListResponse:
    with db_session() as conn:
        feed = reviews.admin_reviews(conn, ctx.user_id, listing_id)
    return ReviewListResponse(
        items=[ReviewResponse(**r) for r in feed["items"]],
        total=feed["total"],
        average_rating=feed["average_rating"],
    )
