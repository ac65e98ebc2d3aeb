"""
backend/schemas_leasing.py

Pydantic schemas for bookings, leases and invoices.

Dates travel as ISO YYYY-MM-DD strings; the stores parse and range-check them.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

try:
    from backend.models import BookingAction, LeaseAction
except ModuleNotFoundError:
    from models import BookingAction, LeaseAction


# ========================================================================
# BOOKINGS
# ========================================================================

class BookingCreateRequest(BaseModel):
    """Tenant booking request. rent_amount defaults to the prorated listing price."""
    listing_id: int
    check_in: str = Field(..., description="YYYY-MM-DD")
    check_out: str = Field(..., description="YYYY-MM-DD, after check_in")
    guests: int = Field(1, ge=1, le=50)
    rent_amount: Optional[float] = Field(None, description="Total rent; derived from listing price when omitted")


class BookingActionRequest(BaseModel):
    action: BookingAction


class BookingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    tenant_id: int
    listing_id: int
    check_in: str
    check_out: str
    guests: int
    rent_amount: float
    status: str
    created_at: str
    updated_at: str
    listing_title: Optional[str] = None
    listing_address: Optional[str] = None
    tenant_name: Optional[str] = None
    tenant_email: Optional[str] = None
    lease_id: Optional[int] = None
    allowed_actions: List[str] = Field(default_factory=list)


class BookingListResponse(BaseModel):
    items: List[BookingResponse] = Field(default_factory=list)
    total: int = 0


# ========================================================================
# LEASES
# ========================================================================

class LeaseCreateRequest(BaseModel):
    booking_id: int


class LeaseTransitionRequest(BaseModel):
    """Explicit lifecycle action. Renew needs end_date; start_date is optional."""
    action: LeaseAction
    start_date: Optional[str] = Field(None, description="Renew only: new start (defaults to current)")
    end_date: Optional[str] = Field(None, description="Renew only: new end date")


class LeaseResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    admin_id: int
    tenant_id: int
    listing_id: int
    booking_id: int
    start_date: str
    end_date: str
    rent_amount: float
    status: str
    renewal_count: int = 0
    created_at: str
    updated_at: str
    last_status_update: str
    listing_title: Optional[str] = None
    listing_address: Optional[str] = None
    tenant_name: Optional[str] = None
    tenant_email: Optional[str] = None
    allowed_actions: List[str] = Field(default_factory=list)


class LeaseListResponse(BaseModel):
    items: List[LeaseResponse] = Field(default_factory=list)
    total: int = 0


class LeaseStatsResponse(BaseModel):
    active_leases: int
    by_status: Dict[str, int]
    leased_listings: int
    total_listings: int
    leased_percentage: float


class RefreshResponse(BaseModel):
    updated: int


# ========================================================================
# INVOICES
# ========================================================================

class InvoiceCreateRequest(BaseModel):
    lease_id: int
    amount: float
    due_date: str = Field(..., description="YYYY-MM-DD")
    description: Optional[str] = Field(None, max_length=500, description="Auto-generated when omitted")


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    admin_id: int
    lease_id: int
    description: str
    amount: float
    due_date: str
    status: str
    created_at: str
    paid_at: Optional[str] = None
    last_status_update: str
    tenant_name: Optional[str] = None
    listing_address: Optional[str] = None


class InvoiceListResponse(BaseModel):
    items: List[InvoiceResponse] = Field(default_factory=list)
    total: int = 0
