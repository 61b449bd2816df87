import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mechanic.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours

# Mapbox Configuration (reverse geocoding + driving directions)
MAPBOX_TOKEN = os.getenv("MAPBOX_TOKEN")
MAPBOX_BASE_URL = os.getenv("MAPBOX_BASE_URL", "https://api.mapbox.com").rstrip("/")
MAPBOX_LANGUAGE = os.getenv("MAPBOX_LANGUAGE", "fa")
REVERSE_GEOCODE_CACHE_SECONDS = int(os.getenv("REVERSE_GEOCODE_CACHE_SECONDS", "86400"))

# S3 Configuration for booking attachments
S3_REGION = os.getenv("S3_REGION")
S3_BUCKET = os.getenv("S3_BUCKET")
S3_ACCESS_KEY_ID = os.getenv("S3_ACCESS_KEY_ID")
S3_SECRET_ACCESS_KEY = os.getenv("S3_SECRET_ACCESS_KEY")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")  # Optional, for S3-compatible stores
S3_PUBLIC_URL_BASE = os.getenv("S3_PUBLIC_URL_BASE")
S3_PRESIGN_EXPIRES_SECONDS = int(os.getenv("S3_PRESIGN_EXPIRES_SECONDS", "60"))

# Offer broadcast
OFFER_TTL_SECONDS = int(os.getenv("OFFER_TTL_SECONDS", "600"))  # 10 minutes
PROVIDER_SEARCH_RADIUS_KM = float(os.getenv("PROVIDER_SEARCH_RADIUS_KM", "25"))
AVERAGE_SPEED_KMH = float(os.getenv("AVERAGE_SPEED_KMH", "30"))
DEFAULT_ETA_MINUTES = int(os.getenv("DEFAULT_ETA_MINUTES", "15"))

# Analytics
BOOKING_COUNTS_DEFAULT_DAYS = int(os.getenv("BOOKING_COUNTS_DEFAULT_DAYS", "90"))

# Realtime
EVENT_QUEUE_SIZE = int(os.getenv("EVENT_QUEUE_SIZE", "100"))

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Frontend base URL (CORS + CSP frame-ancestors)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Optional first admin account, created at startup when both are set
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
