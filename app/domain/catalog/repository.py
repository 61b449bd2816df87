"""Catalog repository - Database operations for categories and services"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import ProviderService, Service, ServiceCategory


class CatalogRepository:
    """Repository for service catalog database operations"""

    @staticmethod
    def get_categories(db: Session) -> list[ServiceCategory]:
        return (
            db.query(ServiceCategory)
            .options(selectinload(ServiceCategory.services))
            .order_by(ServiceCategory.name.asc())
            .all()
        )

    @staticmethod
    def get_category(db: Session, category_id: int) -> Optional[ServiceCategory]:
        return db.query(ServiceCategory).filter(ServiceCategory.id == category_id).first()

    @staticmethod
    def get_category_by_name(db: Session, name: str) -> Optional[ServiceCategory]:
        return db.query(ServiceCategory).filter(ServiceCategory.name == name).first()

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_services_by_ids(db: Session, service_ids: list[int]) -> list[Service]:
        if not service_ids:
            return []
        return db.query(Service).filter(Service.id.in_(service_ids)).all()

    @staticmethod
    def create_category(db: Session, **data) -> ServiceCategory:
        category = ServiceCategory(**data)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def create_service(db: Session, **data) -> Service:
        service = Service(**data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def get_provider_services(db: Session, provider_id: int) -> list[ProviderService]:
        return (
            db.query(ProviderService)
            .options(selectinload(ProviderService.service))
            .filter(ProviderService.provider_id == provider_id)
            .order_by(ProviderService.id.asc())
            .all()
        )

    @staticmethod
    def replace_provider_services(
        db: Session, provider_id: int, service_ids: list[int]
    ) -> list[ProviderService]:
        """Activate the given services for a provider and deactivate the rest"""
        wanted = set(service_ids)
        existing = {
            ps.service_id: ps
            for ps in db.query(ProviderService).filter(ProviderService.provider_id == provider_id)
        }

        for service_id, provider_service in existing.items():
            provider_service.is_active = service_id in wanted

        for service_id in wanted - existing.keys():
            db.add(ProviderService(provider_id=provider_id, service_id=service_id, is_active=True))

        db.commit()
        return CatalogRepository.get_provider_services(db, provider_id)
