"""
backend/schemas_listings.py

Pydantic schemas for listings (properties) and their reviews.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

try:
    from backend.models import ListingStatus
except ModuleNotFoundError:
    from models import ListingStatus


def _trim(v):
    if isinstance(v, str):
        return v.strip()
    return v


class ListingCreateRequest(BaseModel):
    """Request schema for creating a listing.

    title, address, description and price are required; amenities are
    normalised (trimmed, de-duplicated, sorted) by the store.
    """
    title: str = Field(..., max_length=200, description="Listing title")
    address: str = Field(..., max_length=300, description="Street address")
    description: str = Field(..., max_length=5000, description="Free-text description")
    price: float = Field(..., description="Monthly rent, must be > 0")
    amenities: List[str] = Field(default_factory=list, description="Amenity names")
    images: List[str] = Field(default_factory=list, description="Image URLs, in display order")
    status: ListingStatus = Field(ListingStatus.available, description="Initial status")

    @field_validator("title", "address", "description", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _trim(v)


class ListingUpdateRequest(BaseModel):
    """Partial update: only fields present in the request body change."""
    title: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[ListingStatus] = None


class ListingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    owner_id: int
    title: str
    address: str
    description: str
    price: float
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    status: str
    created_at: str
    updated_at: str


class ListingListResponse(BaseModel):
    items: List[ListingResponse] = Field(default_factory=list)
    total: int = 0



# ========================================================================
# REVIEWS
# ========================================================================

class ReviewCreateRequest(BaseModel):
    listing_id: int
    rating: int = Field(..., ge=1, le=5, description="1 (poor) to 5 (excellent)")
    comment: str = Field("", max_length=2000)

    @field_validator("comment", mode="before")
    @classmethod
    def trim_comment(cls, v):
        return _trim(v)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    listing_id: int
    tenant_id: int
    rating: int
    comment: str
    created_at: str
    tenant_name: Optional[str] = None
    listing_title: Optional[str] = None


class ReviewListResponse(BaseModel):
    items: List[ReviewResponse] = Field(default_factory=list)
    total: int = 0
    average_rating: Optional[float] = None
