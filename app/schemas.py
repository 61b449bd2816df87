from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .shared.validators import validate_email, validate_phone


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    role: str = "CUSTOMER"
    fullName: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        # Admins are never self-registered
        role = (v or "").upper()
        if role not in ("CUSTOMER", "PROVIDER"):
            raise ValueError("Role must be CUSTOMER or PROVIDER")
        return role


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return (v or "").strip().lower()


class ProfileUpdate(BaseModel):
    fullName: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None
    imageUrl: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class ProfileResponse(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None
    avatarUrl: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isAvailable: bool = False
    locationUpdatedAt: Optional[datetime] = None


class UserResponse(BaseModel):
    id: int
    email: str
    role: str
    isApproved: bool
    image: Optional[str] = None
    profile: Optional[ProfileResponse] = None
    createdAt: Optional[datetime] = None


class TokenResponse(BaseModel):
    accessToken: str
    tokenType: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
