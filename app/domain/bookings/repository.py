"""Booking repository - Database operations for bookings and offers"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import ProviderService, User, UserRole
from ...models_booking import (
    Booking,
    BookingAttachment,
    BookingItem,
    BookingMessage,
    BookingOffer,
    BookingStatus,
    BookingStatusHistory,
    OfferStatus,
    Rating,
)
from ...shared.timeutils import utcnow


def _detail_options():
    return (
        joinedload(Booking.service),
        joinedload(Booking.vehicle),
        joinedload(Booking.customer).joinedload(User.profile),
        joinedload(Booking.provider).joinedload(User.profile),
        joinedload(Booking.rating),
        selectinload(Booking.items),
        selectinload(Booking.status_history),
    )


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(*_detail_options())
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_customer_booking(db: Session, booking_id: int, customer_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.customer_id == customer_id)
            .first()
        )

    @staticmethod
    def get_provider_booking(db: Session, booking_id: int, provider_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_customer_bookings(db: Session, customer_id: int) -> list[Booking]:
        """Customer's bookings, newest first"""
        return (
            db.query(Booking)
            .options(*_detail_options())
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def get_provider_jobs(db: Session, provider_id: int) -> list[Booking]:
        return (
            db.query(Booking)
            .options(*_detail_options())
            .filter(Booking.provider_id == provider_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def get_customer_bookings_between(
        db: Session, customer_id: int, date_from: datetime, date_to: datetime
    ) -> list[Booking]:
        """Bookings whose effective date (scheduled_at, else date) is in [from, to)"""
        effective_date = func.coalesce(Booking.scheduled_at, Booking.date)
        return (
            db.query(Booking)
            .filter(
                Booking.customer_id == customer_id,
                effective_date >= date_from,
                effective_date < date_to,
            )
            .all()
        )

    @staticmethod
    def create_booking(db: Session, **data) -> Booking:
        booking = Booking(**data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def transition(
        db: Session,
        booking_id: int,
        from_statuses: Iterable[str],
        to_status: str,
        unassigned_only: bool = False,
        **values,
    ) -> bool:
        """
        Move a booking to a new status with a single conditional UPDATE.

        Returns True only when this call changed the row, so two concurrent
        callers racing on the same booking can never both succeed.
        """
        query = db.query(Booking).filter(
            Booking.id == booking_id, Booking.status.in_(list(from_statuses))
        )
        if unassigned_only:
            query = query.filter(Booking.provider_id.is_(None))

        updated = query.update(
            {Booking.status: to_status, Booking.updated_at: utcnow(), **values},
            synchronize_session=False,
        )
        return updated == 1

    @staticmethod
    def add_history(
        db: Session,
        booking_id: int,
        from_status: Optional[str],
        to_status: str,
        actor_user_id: Optional[int],
        note: Optional[str] = None,
    ) -> BookingStatusHistory:
        entry = BookingStatusHistory(
            booking_id=booking_id,
            from_status=from_status,
            to_status=to_status,
            actor_user_id=actor_user_id,
            note=note,
        )
        db.add(entry)
        return entry

    @staticmethod
    def create_rating(db: Session, **data) -> Rating:
        rating = Rating(**data)
        db.add(rating)
        db.commit()
        db.refresh(rating)
        return rating

    @staticmethod
    def get_average_ratings(db: Session, provider_ids: list[int]) -> dict[int, float]:
        if not provider_ids:
            return {}
        rows = (
            db.query(Rating.provider_id, func.avg(Rating.score))
            .filter(Rating.provider_id.in_(provider_ids))
            .group_by(Rating.provider_id)
            .all()
        )
        return {provider_id: float(avg) for provider_id, avg in rows}

    # ------------------------------------------------------------------
    # Messages, items, attachments
    # ------------------------------------------------------------------

    @staticmethod
    def get_messages(db: Session, booking_id: int) -> list[BookingMessage]:
        return (
            db.query(BookingMessage)
            .filter(BookingMessage.booking_id == booking_id)
            .order_by(BookingMessage.created_at.asc(), BookingMessage.id.asc())
            .all()
        )

    @staticmethod
    def create_message(db: Session, **data) -> BookingMessage:
        message = BookingMessage(**data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def get_items(db: Session, booking_id: int) -> list[BookingItem]:
        return (
            db.query(BookingItem)
            .filter(BookingItem.booking_id == booking_id)
            .order_by(BookingItem.id.asc())
            .all()
        )

    @staticmethod
    def get_item(db: Session, booking_id: int, item_id: int) -> Optional[BookingItem]:
        return (
            db.query(BookingItem)
            .filter(BookingItem.id == item_id, BookingItem.booking_id == booking_id)
            .first()
        )

    @staticmethod
    def get_items_total(db: Session, booking_id: int) -> float:
        total = (
            db.query(func.sum(BookingItem.quantity * BookingItem.unit_price))
            .filter(BookingItem.booking_id == booking_id)
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def get_attachments(db: Session, booking_id: int) -> list[BookingAttachment]:
        return (
            db.query(BookingAttachment)
            .filter(BookingAttachment.booking_id == booking_id)
            .order_by(BookingAttachment.id.asc())
            .all()
        )

    @staticmethod
    def create_attachment(db: Session, **data) -> BookingAttachment:
        attachment = BookingAttachment(**data)
        db.add(attachment)
        db.commit()
        db.refresh(attachment)
        return attachment


class OfferRepository:
    """Repository for broadcast offer database operations"""

    @staticmethod
    def find_candidate_providers(db: Session, service_id: int) -> list[User]:
        """Approved providers with an active offering for the service"""
        return (
            db.query(User)
            .join(ProviderService, ProviderService.provider_id == User.id)
            .options(joinedload(User.profile))
            .filter(
                User.role == UserRole.PROVIDER.value,
                User.is_approved.is_(True),
                ProviderService.service_id == service_id,
                ProviderService.is_active.is_(True),
            )
            .order_by(User.id.asc())
            .all()
        )

    @staticmethod
    def create_offers(db: Session, booking_id: int, provider_ids: list[int]) -> list[BookingOffer]:
        offers = [
            BookingOffer(booking_id=booking_id, provider_id=pid, status=OfferStatus.SENT.value)
            for pid in provider_ids
        ]
        db.add_all(offers)
        return offers

    @staticmethod
    def get_offer(db: Session, booking_id: int, provider_id: int) -> Optional[BookingOffer]:
        return (
            db.query(BookingOffer)
            .filter(BookingOffer.booking_id == booking_id, BookingOffer.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_open_offers(db: Session, provider_id: int, sent_after: datetime) -> list[BookingOffer]:
        """SENT offers still inside their TTL window, newest first"""
        return (
            db.query(BookingOffer)
            .join(Booking, Booking.id == BookingOffer.booking_id)
            .options(joinedload(BookingOffer.booking).joinedload(Booking.service))
            .filter(
                BookingOffer.provider_id == provider_id,
                BookingOffer.status == OfferStatus.SENT.value,
                BookingOffer.created_at > sent_after,
                Booking.status == BookingStatus.PENDING.value,
            )
            .order_by(BookingOffer.created_at.desc(), BookingOffer.id.desc())
            .all()
        )

    @staticmethod
    def get_sent_provider_ids(
        db: Session, booking_id: int, exclude_provider_id: Optional[int] = None
    ) -> list[int]:
        query = db.query(BookingOffer.provider_id).filter(
            BookingOffer.booking_id == booking_id,
            BookingOffer.status == OfferStatus.SENT.value,
        )
        if exclude_provider_id is not None:
            query = query.filter(BookingOffer.provider_id != exclude_provider_id)
        return [row[0] for row in query.all()]

    @staticmethod
    def respond(
        db: Session,
        booking_id: int,
        provider_id: int,
        status: str,
        decline_reason: Optional[str] = None,
    ) -> int:
        """Close one provider's SENT offer; returns rows changed"""
        values = {BookingOffer.status: status, BookingOffer.responded_at: utcnow()}
        if decline_reason is not None:
            values[BookingOffer.decline_reason] = decline_reason
        return (
            db.query(BookingOffer)
            .filter(
                BookingOffer.booking_id == booking_id,
                BookingOffer.provider_id == provider_id,
                BookingOffer.status == OfferStatus.SENT.value,
            )
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def expire_open_offers(
        db: Session, booking_id: int, exclude_provider_id: Optional[int] = None
    ) -> int:
        """Expire every outstanding SENT offer for a booking"""
        query = db.query(BookingOffer).filter(
            BookingOffer.booking_id == booking_id,
            BookingOffer.status == OfferStatus.SENT.value,
        )
        if exclude_provider_id is not None:
            query = query.filter(BookingOffer.provider_id != exclude_provider_id)
        return query.update(
            {BookingOffer.status: OfferStatus.EXPIRED.value, BookingOffer.responded_at: utcnow()},
            synchronize_session=False,
        )

    @staticmethod
    def expire_offers_sent_before(db: Session, cutoff: datetime) -> int:
        return (
            db.query(BookingOffer)
            .filter(
                BookingOffer.status == OfferStatus.SENT.value,
                BookingOffer.created_at <= cutoff,
            )
            .update(
                {BookingOffer.status: OfferStatus.EXPIRED.value, BookingOffer.responded_at: utcnow()},
                synchronize_session=False,
            )
        )

    @staticmethod
    def has_offer(db: Session, booking_id: int, provider_id: int) -> bool:
        return (
            db.query(BookingOffer.id)
            .filter(BookingOffer.booking_id == booking_id, BookingOffer.provider_id == provider_id)
            .first()
            is not None
        )

