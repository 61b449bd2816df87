import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..auth import create_access_token, get_current_user, hash_password, verify_password
from ..database import get_db
from ..models import Profile, User, UserRole
from ..rate_limiter import create_rate_limiter
from ..schemas import (
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Brute force protection
rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
rate_limit_register = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")

# Compared against when the email is unknown so timing doesn't reveal accounts
_DUMMY_HASH = hash_password("not-a-real-password")


def user_to_response(user: User) -> UserResponse:
    profile = user.profile
    return UserResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        isApproved=user.is_approved,
        image=user.image,
        profile=(
            ProfileResponse(
                fullName=profile.full_name,
                phone=profile.phone,
                avatarUrl=profile.avatar_url,
                latitude=profile.latitude,
                longitude=profile.longitude,
                isAvailable=profile.is_available,
                locationUpdatedAt=profile.location_updated_at,
            )
            if profile
            else None
        ),
        createdAt=user.created_at,
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_register),
):
    """Create a customer or provider account; providers start unapproved"""
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=data.email,
        hashed_password=hash_password(data.password),
        role=data.role,
        # Customers can book immediately; providers wait for an admin
        is_approved=data.role == UserRole.CUSTOMER.value,
    )
    user.profile = Profile(full_name=data.fullName, phone=data.phone)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        logger.warning(f"⚠️ Concurrent registration for {data.email}")
        raise HTTPException(status_code=409, detail="Email already registered")
    db.refresh(user)

    logger.info(f"✅ Registered {user.role.lower()} {user.id} ({user.email})")
    return TokenResponse(accessToken=create_access_token(user), user=user_to_response(user))


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_login),
):
    user = (
        db.query(User)
        .options(joinedload(User.profile))
        .filter(User.email == data.email)
        .first()
    )
    if not user:
        verify_password(data.password, _DUMMY_HASH)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not verify_password(data.password, user.hashed_password):
        logger.warning(f"⚠️ Failed login for user {user.id}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return TokenResponse(accessToken=create_access_token(user), user=user_to_response(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return user_to_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update current user profile"""
    profile = current_user.profile
    if profile is None:
        profile = Profile(user_id=current_user.id)
        db.add(profile)
        current_user.profile = profile

    if data.fullName is not None:
        profile.full_name = data.fullName.strip() or None
    if data.phone is not None:
        profile.phone = data.phone
    if data.imageUrl is not None:
        profile.avatar_url = data.imageUrl or None
        current_user.image = data.imageUrl or None

    db.commit()
    db.refresh(current_user)
    return user_to_response(current_user)
