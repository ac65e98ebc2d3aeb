"""
backend/routes_invoices.py

Invoice endpoints (admin only, capability "invoice:manage").
"""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Path, Query

try:
    from backend import invoices
    from backend.auth_context import AuthContext, require_auth_context
    from backend.db import db_session
    from backend.dependencies import require_capability
    from backend.rbac import Capability
    from backend.schemas_leasing import InvoiceCreateRequest, InvoiceListResponse, InvoiceResponse
except ModuleNotFoundError:
    import invoices
    from auth_context import AuthContext, require_auth_context
    from db import db_session
    from dependencies import require_capability
    from rbac import Capability
    from schemas_leasing import InvoiceCreateRequest, InvoiceListResponse, InvoiceResponse


router = APIRouter(
    prefix="/api/invoices",
    tags=["invoices"],
    dependencies=[Depends(require_capability(Capability.INVOICE_MANAGE))],
)


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    request: InvoiceCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
) -> InvoiceResponse:
    with db_session() as conn:
        invoice = invoices.create_invoice(
            conn,
            ctx.user_id,
            request.lease_id,
            request.amount,
            request.due_date,
            description=request.description,
        )
    return InvoiceResponse(**invoice)


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    status: Optional[str] = Query(None, description="Filter by status"),
    ctx: AuthContext = Depends(require_auth_context),
) -> InvoiceListResponse:
    with db_session() as conn:
        items = invoices.list_invoices(conn, ctx.user_id, status)
    return InvoiceListResponse(items=[InvoiceResponse(**i) for i in items], total=len(items))


@router.get("/stats")
def invoice_stats(ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Dict[str, float]]:
    with db_session() as conn:
        return invoices.invoice_stats(conn, ctx.user_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int = Path(..., description="Invoice ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> InvoiceResponse:
    with db_session() as conn:
        invoice = invoices.get_invoice(conn, ctx.user_id, invoice_id)
    return InvoiceResponse(**invoice)


@router.post("/{invoice_id}/pay", response_model=InvoiceResponse)
def pay_invoice(
    invoice_id: int = Path(..., description="Invoice ID"),
    ctx: AuthContext = Depends(require_auth_context),
) -> InvoiceResponse:
    with db_session() as conn:
        invoice = invoices.mark_paid(conn, ctx.user_id, invoice_id)
    return InvoiceResponse(**invoice)
