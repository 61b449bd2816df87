"""Customer domain schemas - Pydantic models for validation"""

from datetime import date as date_type
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_license_plate

MIN_VEHICLE_YEAR = 1950


def _max_vehicle_year() -> int:
    return date_type.today().year + 1


def _check_year(v: Optional[int]) -> Optional[int]:
    if v is not None and not MIN_VEHICLE_YEAR <= v <= _max_vehicle_year():
        raise ValueError(f"Year must be between {MIN_VEHICLE_YEAR} and {_max_vehicle_year()}")
    return v


class VehicleCreate(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int
    licensePlate: str = Field(..., min_length=1, max_length=32)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return _check_year(v)

    @field_validator("licensePlate")
    @classmethod
    def normalize_plate(cls, v):
        return validate_license_plate(v)


class VehicleUpdate(BaseModel):
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = None
    licensePlate: Optional[str] = Field(None, min_length=1, max_length=32)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return _check_year(v)

    @field_validator("licensePlate")
    @classmethod
    def normalize_plate(cls, v):
        return validate_license_plate(v) if v is not None else v

    @model_validator(mode="after")
    def require_one_field(self):
        if self.make is None and self.model is None and self.year is None and self.licensePlate is None:
            raise ValueError("Provide at least one field to update")
        return self


class VehicleResponse(BaseModel):
    id: int
    make: str
    model: str
    year: int
    licensePlate: str
    createdAt: Optional[datetime] = None


class PlaceCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)


class PlaceUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def require_one_field(self):
        if self.label is None and self.lat is None and self.lng is None and self.address is None:
            raise ValueError("Provide at least one field to update")
        return self


class PlaceResponse(BaseModel):
    id: int
    label: str
    address: str
    latitude: float
    longitude: float
    createdAt: Optional[datetime] = None


class RegionSummary(BaseModel):
    id: int
    name: str


class BookingCounts(BaseModel):
    PENDING: int = 0
    CONFIRMED: int = 0
    IN_PROGRESS: int = 0
    COMPLETED: int = 0
    CANCELLED: int = 0
