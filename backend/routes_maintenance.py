"""
backend/routes_maintenance.py

Maintenance request endpoints. Tenants file ("maintenance:create"),
admins triage ("maintenance:manage"); both may list their own.

The caretaker roster and request counters are admin-only. Their static
paths are declared before "/{request_id}".
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query

try:
    from backend import caretakers, maintenance
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_maintenance import (
        AssignCaretakerRequest,
        CaretakerCreateRequest,
        CaretakerListResponse,
        CaretakerResponse,
        CountResponse,
        MaintenanceCreateRequest,
        MaintenanceListResponse,
        MaintenanceResponse,
        MaintenanceUpdateRequest,
    )
except ModuleNotFoundError:
    import caretakers
    import maintenance
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_maintenance import (
        AssignCaretakerRequest,
        CaretakerCreateRequest,
        CaretakerListResponse,
        CaretakerResponse,
        CountResponse,
        MaintenanceCreateRequest,
        MaintenanceListResponse,
        MaintenanceResponse,
        MaintenanceUpdateRequest,
    )


router = APIRouter(
    prefix="/api/maintenance",
    tags=["maintenance"],
)

_manage = [Depends(require_capability(Capability.MAINTENANCE_MANAGE))]


@router.post("", response_model=MaintenanceResponse, status_code=201,
             dependencies=[Depends(require_capability(Capability.MAINTENANCE_CREATE))])
def create_request(
    request: MaintenanceCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> MaintenanceResponse:
    with db_session() as conn:
        item = maintenance.create_request(
            conn,
            ctx.user_id,
            request.listing_id,
            request.issue,
            description=request.description,
            priority=request.priority.value,
        )
    return MaintenanceResponse(**item)


@router.get("", response_model=MaintenanceListResponse)
def list_requests(
    status: Optional[str] = Query(None, description="Filter by status"),
    ctx: AuthContext = Depends(require_auth_context),
) -> MaintenanceListResponse:
    with db_session() as conn:
        items = maintenance.list_requests(conn, ctx.user_id, ctx.is_admin, status)
    return MaintenanceListResponse(items=[MaintenanceResponse(**i) for i in items], total=len(items))


# ---------------------------------------------------------
# Counters
# ---------------------------------------------------------
@router.get("/count", response_model=CountResponse, dependencies=_manage)
def count_requests(ctx: AuthContext = Depends(require_auth_context)) -> CountResponse:
    with db_session() as conn:
        return CountResponse(count=maintenance.count_requests(conn, ctx.user_id))


@router.get("/count-high-priority", response_model=CountResponse, dependencies=_manage)
def count_high_priority(ctx: AuthContext = Depends(require_auth_context)) -> CountResponse:
    """Open requests marked High or Urgent."""
    with db_session() as conn:
        return CountResponse(count=maintenance.count_high_priority(conn, ctx.user_id))


# ---------------------------------------------------------
# Caretakers
# ---------------------------------------------------------
@router.post("/caretakers", response_model=CaretakerResponse, status_code=201, dependencies=_manage)
def create_caretaker(
    request: CaretakerCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> CaretakerResponse:
    with db_session() as conn:
        caretaker = caretakers.create_caretaker(
            conn,
            ctx.user_id,
            request.first_name,
            request.surname,
            request.email,
            request.phone_number,
            request.profession,
        )
    return CaretakerResponse(**caretaker)


@router.get("/caretakers", response_model=CaretakerListResponse, dependencies=_manage)
def list_caretakers(ctx: AuthContext = Depends(require_auth_context)) -> CaretakerListResponse:
    with db_session() as conn:
        items = caretakers.list_caretakers(conn, ctx.user_id)
    return CaretakerListResponse(items=[CaretakerResponse(**c) for c in items], total=len(items))


@router.get("/caretakers/{caretaker_id}", response_model=CaretakerResponse, dependencies=_manage)
def get_caretaker(
    caretaker_id: int = Path(..., description="Caretaker ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> CaretakerResponse:
    with db_session() as conn:
        caretaker = caretakers.get_caretaker(conn, ctx.user_id, caretaker_id)
    return CaretakerResponse(**caretaker)


@router.delete("/caretakers/{caretaker_id}", dependencies=_manage)
def delete_caretaker(
    caretaker_id: int = Path(..., description="Caretaker ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> Dict[str, Any]:
    with db_session() as conn:
        caretakers.delete_caretaker(conn, ctx.user_id, caretaker_id)
    return {"deleted": True, "id": caretaker_id}


@router.post("/assign", response_model=MaintenanceResponse, dependencies=_manage)
def assign_caretaker(
    request: AssignCaretakerRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> MaintenanceResponse:
    """
    Assign a caretaker to a maintenance request.

    Raises:
        ConflictError(409): The request is Completed or Cancelled
    """
    with db_session() as conn:
        item = maintenance.assign_caretaker(
            conn, ctx.user_id, request.maintenance_request_id, request.caretaker_id
        )
    return MaintenanceResponse(**item)


@router.patch("/{request_id}", response_model=MaintenanceResponse, dependencies=_manage)
def update_request(
    request: MaintenanceUpdateRequest,
    request_id: int = Path(..., description="Maintenance request ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> MaintenanceResponse:
    changes = request.model_dump(exclude_unset=True)
    with db_session() as conn:
        item = maintenance.update_request(conn, ctx.user_id, request_id, changes)
    return MaintenanceResponse(**item)
