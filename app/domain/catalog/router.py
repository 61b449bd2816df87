"""Catalog router - FastAPI endpoints for the service catalog"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin, require_provider
from ...database import get_db
from ...models import User
from .schemas import (
    CategoryCreate,
    CategoryResponse,
    ProviderServicesUpdate,
    ServiceCreate,
    ServiceSummary,
)
from .service import CatalogService, service_to_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories(service: CatalogService = Depends(get_catalog_service)):
    """Public catalog: categories with their active services"""
    return service.get_categories()


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    category = service.create_category(data)
    return CategoryResponse(
        id=category.id, name=category.name, description=category.description, services=[]
    )


@router.post("", response_model=ServiceSummary, status_code=201)
async def create_service(
    data: ServiceCreate,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_to_summary(service.create_service(data))


@router.get("/mine", response_model=list[ServiceSummary])
async def get_my_services(
    current_user: User = Depends(require_provider),
    service: CatalogService = Depends(get_catalog_service),
):
    """Services the current provider offers"""
    return service.get_provider_services(current_user)


@router.put("/mine", response_model=list[ServiceSummary])
async def set_my_services(
    data: ProviderServicesUpdate,
    current_user: User = Depends(require_provider),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.set_provider_services(current_user, data.serviceIds)
