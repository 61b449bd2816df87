"""Catalog domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class ServiceSummary(BaseModel):
    id: int
    name: str
    basePrice: float
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    services: list[ServiceSummary]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class ServiceCreate(BaseModel):
    categoryId: int
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    basePrice: float = Field(..., ge=0)


class ProviderServicesUpdate(BaseModel):
    """Full replacement of the services a provider offers"""

    serviceIds: list[int] = Field(default_factory=list, max_length=200)
