"""Admin router - FastAPI endpoints for platform administration"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Region, User
from .schemas import ApprovalQueueEntry, DashboardStats, RegionCreate, RegionResponse
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


def provider_to_entry(user: User) -> ApprovalQueueEntry:
    profile = user.profile
    return ApprovalQueueEntry(
        id=user.id,
        email=user.email,
        fullName=profile.full_name if profile else None,
        phone=profile.phone if profile else None,
        avatarUrl=(profile.avatar_url if profile else None) or user.image,
        isApproved=user.is_approved,
        createdAt=user.created_at,
    )


def region_to_response(region: Region) -> RegionResponse:
    return RegionResponse(
        id=region.id, name=region.name, polygon=region.polygon, createdAt=region.created_at
    )


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    _: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_dashboard_stats()


@router.get("/approvals", response_model=list[ApprovalQueueEntry])
async def get_approval_queue(
    _: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    """Providers waiting for approval"""
    return [provider_to_entry(u) for u in service.get_approval_queue()]


@router.post("/providers/{user_id}/approve", response_model=ApprovalQueueEntry)
async def approve_provider(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return provider_to_entry(service.approve_provider(user_id, current_user))


# ============================================================================
# REGIONS
# ============================================================================


@router.get("/regions", response_model=list[RegionResponse])
async def get_regions(
    _: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return [region_to_response(r) for r in service.get_regions()]


@router.post("/regions", response_model=RegionResponse, status_code=201)
async def create_region(
    data: RegionCreate,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    """Create a named region from a GeoJSON Polygon"""
    return region_to_response(service.create_region(data, current_user))


@router.delete("/regions/{region_id}")
async def delete_region(
    region_id: int,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.delete_region(region_id, current_user)
