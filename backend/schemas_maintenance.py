"""
backend/schemas_maintenance.py

Pydantic schemas for maintenance requests, caretakers and the dashboard.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

try:
    from backend.models import MaintenancePriority, MaintenanceStatus
except ModuleNotFoundError:
    from models import MaintenancePriority, MaintenanceStatus


class MaintenanceCreateRequest(BaseModel):
    listing_id: int
    issue: str = Field(..., max_length=200)
    description: str = Field("", max_length=5000)
    priority: MaintenancePriority = MaintenancePriority.medium


class MaintenanceUpdateRequest(BaseModel):
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    caretaker: Optional[str] = Field(None, max_length=120)


class MaintenanceResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    listing_id: int
    tenant_id: int
    issue: str
    description: str
    priority: str
    status: str
    caretaker: Optional[str] = None
    caretaker_id: Optional[int] = None
    created_at: str
    updated_at: str
    listing_title: Optional[str] = None
    listing_address: Optional[str] = None
    tenant_name: Optional[str] = None


class MaintenanceListResponse(BaseModel):
    items: List[MaintenanceResponse] = Field(default_factory=list)
    total: int = 0


class CountResponse(BaseModel):
    count: int


# ========================================================================
# CARETAKERS
# ========================================================================

class CaretakerCreateRequest(BaseModel):
    """All fields required; email and phone are format-checked by the store."""
    first_name: str = Field(..., max_length=80)
    surname: str = Field(..., max_length=80)
    email: str = Field(..., max_length=254)
    phone_number: str = Field(..., max_length=30)
    profession: str = Field(..., max_length=80, description="e.g. Plumber, Electrician")


class CaretakerResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    admin_id: int
    first_name: str
    surname: str
    email: str
    phone_number: str
    profession: str
    created_at: str
    open_requests: int = 0


class CaretakerListResponse(BaseModel):
    items: List[CaretakerResponse] = Field(default_factory=list)
    total: int = 0


class AssignCaretakerRequest(BaseModel):
    caretaker_id: int
    maintenance_request_id: int


class ActivityEntry(BaseModel):
    id: int
    action: str
    detail: str
    created_at: str


class ActivityListResponse(BaseModel):
    items: List[ActivityEntry] = Field(default_factory=list)


class DashboardOverview(BaseModel):
    total_listings: int
    listings_by_status: Dict[str, int]
    listings_added_this_month: int
    active_leases: int
    leased_percentage: float
    current_month_revenue: Dict[str, Any]
    invoice_stats: Dict[str, Dict[str, float]]
