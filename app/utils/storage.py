"""
Object storage utilities for booking attachments.
Browsers upload directly to S3 with a short-lived presigned PUT URL.
"""

import hashlib
import logging
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .. import config
from ..shared.timeutils import utcnow

logger = logging.getLogger(__name__)

ALLOWED_ATTACHMENT_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "video/mp4",
    "video/quicktime",
    "application/pdf",
}

_client = None


class StorageNotConfiguredError(RuntimeError):
    pass


def get_s3_client():
    """Get (and cache) the boto3 S3 client; raises when credentials are missing"""
    global _client
    if _client is None:
        if not (
            config.S3_REGION
            and config.S3_BUCKET
            and config.S3_ACCESS_KEY_ID
            and config.S3_SECRET_ACCESS_KEY
        ):
            raise StorageNotConfiguredError(
                "S3 is not configured. Please set S3_REGION, S3_BUCKET, S3_ACCESS_KEY_ID, S3_SECRET_ACCESS_KEY."
            )
        _client = boto3.client(
            "s3",
            region_name=config.S3_REGION,
            endpoint_url=config.S3_ENDPOINT_URL or None,
            aws_access_key_id=config.S3_ACCESS_KEY_ID,
            aws_secret_access_key=config.S3_SECRET_ACCESS_KEY,
            config=Config(signature_version="s3v4"),
        )
    return _client


def get_presigned_put_url(key: str, content_type: str, expires_in: Optional[int] = None) -> str:
    """Presigned PUT URL; the upload must send the same Content-Type"""
    s3 = get_s3_client()
    try:
        return s3.generate_presigned_url(
            "put_object",
            Params={"Bucket": config.S3_BUCKET, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in or config.S3_PRESIGN_EXPIRES_SECONDS,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to presign upload for {key}: {e}")
        raise


def public_url_for_key(key: str) -> str:
    if not config.S3_PUBLIC_URL_BASE:
        raise StorageNotConfiguredError("S3_PUBLIC_URL_BASE not configured")
    base = config.S3_PUBLIC_URL_BASE.rstrip("/")
    return f"{base}/{key}"


def generate_attachment_key(booking_id: int, user_id: int, filename: str) -> str:
    """
    Generate a unique key for a booking attachment.

    Format: bookings/{booking_id}/{user_id}/{timestamp}_{hash}_{filename}
    """
    timestamp = utcnow().strftime("%Y%m%d_%H%M%S_%f")
    file_hash = hashlib.sha256(f"{booking_id}{user_id}{timestamp}{filename}".encode()).hexdigest()[:8]
    safe_filename = "".join(c for c in filename if c.isalnum() or c in "._-")[:100] or "file"
    return f"bookings/{booking_id}/{user_id}/{timestamp}_{file_hash}_{safe_filename}"
