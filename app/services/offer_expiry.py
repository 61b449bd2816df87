"""
Offer expiry sweep
Offers carry a TTL that the provider app shows as a countdown; this job
closes the ones nobody answered in time so they stop counting as open.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..config import OFFER_TTL_SECONDS
from ..domain.bookings.repository import OfferRepository
from ..shared.timeutils import utcnow

logger = logging.getLogger(__name__)


def expire_stale_offers(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Mark SENT offers older than the TTL as EXPIRED.

    Returns:
        dict: Summary with the number of offers expired
    """
    cutoff = (now or utcnow()) - timedelta(seconds=OFFER_TTL_SECONDS)
    try:
        expired = OfferRepository.expire_offers_sent_before(db, cutoff)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if expired:
        logger.info(f"⌛ Expired {expired} stale offer(s) sent before {cutoff.isoformat()}")
    return {"expired": expired, "cutoff": cutoff.isoformat()}
