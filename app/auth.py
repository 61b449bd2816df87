import logging
import os
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session, joinedload

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import User, UserRole
from .shared.timeutils import utcnow

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    """Sign a bearer token carrying the user id (sub) and role"""
    expire = utcnow() + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "exp": expire,
    }
    return jose_jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"ℹ️ Rejected access token: {e}")
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve a bearer token to an existing user (also used by WebSocket routes)"""
    payload = decode_access_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        logger.error("❌ Token missing user ID claim")
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    user = db.query(User).options(joinedload(User.profile)).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    user = get_user_from_token(credentials.credentials, db)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def _require_role(user: User, *roles: UserRole) -> User:
    if user.role not in {role.value for role in roles}:
        logger.warning(f"⚠️ User {user.id} ({user.role}) denied access requiring {[r.value for r in roles]}")
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return user


async def require_customer(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, UserRole.CUSTOMER)


async def require_provider(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, UserRole.PROVIDER)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    return _require_role(user, UserRole.ADMIN)


async def require_approved_provider(user: User = Depends(require_provider)) -> User:
    """Providers can only work offers after an admin approved them"""
    if not user.is_approved:
        raise HTTPException(
            status_code=403,
            detail="Provider account is awaiting approval",
            headers={"X-Approval-Required": "true"},
        )
    return user
