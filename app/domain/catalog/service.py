"""Catalog service - Business logic for the service catalog"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Service, ServiceCategory, User
from .repository import CatalogRepository
from .schemas import CategoryCreate, CategoryResponse, ServiceCreate, ServiceSummary

logger = logging.getLogger(__name__)


def service_to_summary(service: Service) -> ServiceSummary:
    return ServiceSummary(
        id=service.id,
        name=service.name,
        basePrice=service.base_price,
        description=service.description,
    )


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def get_categories(self) -> list[CategoryResponse]:
        """Categories ordered by name with their active services"""
        return [
            CategoryResponse(
                id=category.id,
                name=category.name,
                description=category.description,
                services=[service_to_summary(s) for s in category.services if s.is_active],
            )
            for category in self.repo.get_categories(self.db)
        ]

    def create_category(self, data: CategoryCreate) -> ServiceCategory:
        if self.repo.get_category_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail="Category already exists")
        category = self.repo.create_category(self.db, name=data.name, description=data.description)
        logger.info(f"🗂️ Created service category {category.id} ({category.name})")
        return category

    def create_service(self, data: ServiceCreate) -> Service:
        if not self.repo.get_category(self.db, data.categoryId):
            raise HTTPException(status_code=404, detail="Category not found")
        service = self.repo.create_service(
            self.db,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            base_price=data.basePrice,
        )
        logger.info(f"🔧 Created service {service.id} ({service.name})")
        return service

    def get_provider_services(self, provider: User) -> list[ServiceSummary]:
        return [
            service_to_summary(ps.service)
            for ps in self.repo.get_provider_services(self.db, provider.id)
            if ps.is_active
        ]

    def set_provider_services(self, provider: User, service_ids: list[int]) -> list[ServiceSummary]:
        """Declare which services the provider performs"""
        unique_ids = sorted(set(service_ids))
        services = self.repo.get_services_by_ids(self.db, unique_ids)
        found = {s.id for s in services if s.is_active}
        missing = [sid for sid in unique_ids if sid not in found]
        if missing:
            raise HTTPException(status_code=404, detail=f"Unknown services: {missing}")

        self.repo.replace_provider_services(self.db, provider.id, unique_ids)
        logger.info(f"🔧 Provider {provider.id} now offers services {unique_ids}")
        return self.get_provider_services(provider)
