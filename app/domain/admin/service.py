"""Admin service - Dashboard stats, provider approval and region management"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Region, User, UserRole
from ...shared.geo import validate_polygon
from .repository import AdminRepository
from .schemas import DashboardStats, RegionCreate

logger = logging.getLogger(__name__)


class AdminService:
    """Service layer for admin business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AdminRepository()

    def get_dashboard_stats(self) -> DashboardStats:
        return DashboardStats(
            users=self.repo.count_users(self.db),
            providers=self.repo.count_users(self.db, UserRole.PROVIDER.value),
            customers=self.repo.count_users(self.db, UserRole.CUSTOMER.value),
            bookings=self.repo.count_bookings(self.db),
            pendingApprovals=self.repo.count_unapproved_providers(self.db),
        )

    def get_approval_queue(self) -> list[User]:
        """Providers waiting for approval, oldest sign-up first"""
        return self.repo.get_unapproved_providers(self.db)

    def approve_provider(self, user_id: int, admin: User) -> User:
        provider = self.repo.get_provider(self.db, user_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        if provider.is_approved:
            return provider

        provider = self.repo.approve(self.db, provider)
        logger.info(f"✅ Provider {provider.id} approved by admin {admin.id}")
        return provider

    def get_regions(self) -> list[Region]:
        return self.repo.get_regions(self.db)

    def create_region(self, data: RegionCreate, admin: User) -> Region:
        error = validate_polygon(data.polygon)
        if error:
            raise HTTPException(status_code=400, detail=error)

        name = data.name.strip()
        if self.repo.get_region_by_name(self.db, name):
            raise HTTPException(status_code=409, detail="Region already exists")

        region = self.repo.create_region(self.db, name, data.polygon)
        logger.info(f"🗺️ Region {region.id} ({region.name}) created by admin {admin.id}")
        return region

    def delete_region(self, region_id: int, admin: User) -> dict:
        region = self.repo.get_region(self.db, region_id)
        if not region:
            raise HTTPException(status_code=404, detail="Region not found")
        self.repo.delete_region(self.db, region)
        logger.info(f"🗑️ Region {region_id} deleted by admin {admin.id}")
        return {"ok": True}
