"""Admin domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    users: int
    providers: int
    customers: int
    bookings: int
    pendingApprovals: int


class ApprovalQueueEntry(BaseModel):
    id: int
    email: str
    fullName: Optional[str] = None
    phone: Optional[str] = None
    avatarUrl: Optional[str] = None
    isApproved: bool
    createdAt: Optional[datetime] = None


class RegionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    # GeoJSON Polygon: {"type": "Polygon", "coordinates": [[[lng, lat], ...]]}
    polygon: dict[str, Any]


class RegionResponse(BaseModel):
    id: int
    name: str
    polygon: dict[str, Any]
    createdAt: Optional[datetime] = None
