"""Booking service - Business logic for the booking lifecycle and offer workflow"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...models import User, UserRole, Vehicle
from ...models_booking import (
    Booking,
    BookingAttachment,
    BookingItem,
    BookingMessage,
    BookingStatus,
    JobType,
    OfferStatus,
)
from ...services.notification_service import notification_service, offer_payload
from ...shared.geo import haversine_km
from ...shared.timeutils import to_naive_utc, utcnow
from ...utils.storage import (
    ALLOWED_ATTACHMENT_MIME_TYPES,
    StorageNotConfiguredError,
    generate_attachment_key,
    get_presigned_put_url,
    public_url_for_key,
)
from ..catalog.repository import CatalogRepository
from ..customers.schemas import VehicleResponse
from .repository import BookingRepository, OfferRepository
from .schemas import (
    AttachmentResponse,
    AttachmentUploadRequest,
    BookingCreate,
    BookingDetailResponse,
    BookingItemCreate,
    BookingItemResponse,
    BookingResponse,
    MessageCreate,
    MessageResponse,
    PartySummary,
    RatingCreate,
    RatingResponse,
    ServiceBrief,
    StatusHistoryEntry,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}
CANCELLABLE_STATUSES = [
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.IN_PROGRESS.value,
]
# Statuses during which the provider may still change parts and labour
ITEM_EDITABLE_STATUSES = {BookingStatus.CONFIRMED.value, BookingStatus.IN_PROGRESS.value}


# ============================================================================
# RESPONSE MAPPING
# ============================================================================


def party_summary(user: Optional[User]) -> Optional[PartySummary]:
    if user is None:
        return None
    profile = user.profile
    return PartySummary(
        id=user.id,
        fullName=profile.full_name if profile else None,
        phone=profile.phone if profile else None,
        avatarUrl=(profile.avatar_url if profile else None) or user.image,
    )


def vehicle_to_response(vehicle: Vehicle) -> VehicleResponse:
    return VehicleResponse(
        id=vehicle.id,
        make=vehicle.make,
        model=vehicle.model,
        year=vehicle.year,
        licensePlate=vehicle.license_plate,
        createdAt=vehicle.created_at,
    )


def item_to_response(item: BookingItem) -> BookingItemResponse:
    return BookingItemResponse(
        id=item.id,
        description=item.description,
        quantity=item.quantity,
        unitPrice=item.unit_price,
        total=round(item.quantity * item.unit_price, 2),
    )


def message_to_response(message: BookingMessage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        bookingId=message.booking_id,
        senderId=message.sender_id,
        body=message.body,
        createdAt=message.created_at,
    )


def attachment_to_response(attachment: BookingAttachment) -> AttachmentResponse:
    return AttachmentResponse(
        id=attachment.id,
        bookingId=attachment.booking_id,
        uploaderId=attachment.uploader_id,
        key=attachment.key,
        url=attachment.url,
        contentType=attachment.content_type,
        createdAt=attachment.created_at,
    )


def _base_fields(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "status": booking.status,
        "jobType": booking.job_type,
        "price": booking.price,
        "date": booking.date,
        "scheduledAt": booking.scheduled_at,
        "problemDescription": booking.problem_description,
        "addressLabel": booking.address_label,
        "latitude": booking.latitude,
        "longitude": booking.longitude,
        "customerId": booking.customer_id,
        "providerId": booking.provider_id,
        "vehicleId": booking.vehicle_id,
        "serviceId": booking.service_id,
        "cancellationFee": booking.cancellation_fee,
        "declineReason": booking.decline_reason,
        "createdAt": booking.created_at,
        "updatedAt": booking.updated_at,
    }


def booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(**_base_fields(booking))


def booking_to_detail(booking: Booking) -> BookingDetailResponse:
    """Booking with service, vehicle, both parties, rating, items and history"""
    rating = booking.rating
    return BookingDetailResponse(
        **_base_fields(booking),
        service=ServiceBrief(
            id=booking.service.id,
            name=booking.service.name,
            basePrice=booking.service.base_price,
        ),
        vehicle=vehicle_to_response(booking.vehicle),
        customer=party_summary(booking.customer),
        provider=party_summary(booking.provider),
        rating=(
            RatingResponse(score=rating.score, comment=rating.comment, createdAt=rating.created_at)
            if rating
            else None
        ),
        items=[item_to_response(i) for i in booking.items],
        statusHistory=[
            StatusHistoryEntry(
                fromStatus=h.from_status,
                toStatus=h.to_status,
                actorUserId=h.actor_user_id,
                note=h.note,
                createdAt=h.created_at,
            )
            for h in booking.status_history
        ],
    )


# ============================================================================
# ELIGIBILITY
# ============================================================================


def find_eligible_provider_ids(db: Session, service_id: int, lat: float, lng: float) -> list[int]:
    """
    Providers who should receive an offer for a booking.

    Approved providers with an active offering for the service. A provider
    that has reported a location must be available and within the search
    radius; one that never reported a location is still eligible.
    """
    eligible = []
    for provider in OfferRepository.find_candidate_providers(db, service_id):
        profile = provider.profile
        if profile is not None and profile.latitude is not None and profile.longitude is not None:
            if not profile.is_available:
                continue
            distance = haversine_km(lat, lng, profile.latitude, profile.longitude)
            if distance > config.PROVIDER_SEARCH_RADIUS_KM:
                continue
        eligible.append(provider.id)
    return eligible


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.offers = OfferRepository()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _load(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def _can_view(self, booking: Booking, user: User) -> bool:
        if user.role == UserRole.ADMIN.value:
            return True
        if booking.customer_id == user.id or booking.provider_id == user.id:
            return True
        return user.role == UserRole.PROVIDER.value and self.offers.has_offer(
            self.db, booking.id, user.id
        )

    def get_booking(self, booking_id: int, user: User) -> Booking:
        """Booking visible to its customer, assigned provider, an offer holder or an admin"""
        booking = self._load(booking_id)
        if not self._can_view(booking, user):
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def _get_participant_booking(self, booking_id: int, user: User) -> Booking:
        """Booking where the user is the customer or the assigned provider"""
        booking = self._load(booking_id)
        if user.id not in (booking.customer_id, booking.provider_id):
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_customer_bookings(self, user: User) -> list[Booking]:
        return self.repo.get_customer_bookings(self.db, user.id)

    def get_provider_jobs(self, user: User) -> list[Booking]:
        return self.repo.get_provider_jobs(self.db, user.id)

    # ------------------------------------------------------------------
    # Creation and status changes
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate, customer: User) -> Booking:
        """Create a PENDING booking and broadcast offers to eligible providers"""
        logger.info(f"📥 Creating booking for customer {customer.id} (service {data.serviceId})")

        service = CatalogRepository.get_active_service(self.db, data.serviceId)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        vehicle = (
            self.db.query(Vehicle)
            .filter(Vehicle.id == data.vehicleId, Vehicle.user_id == customer.id)
            .first()
        )
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        scheduled_at = to_naive_utc(data.scheduledAt)
        now = utcnow()
        booking = self.repo.create_booking(
            self.db,
            customer_id=customer.id,
            provider_id=None,
            vehicle_id=vehicle.id,
            service_id=service.id,
            status=BookingStatus.PENDING.value,
            job_type=(JobType.SCHEDULED if scheduled_at else JobType.ON_DEMAND).value,
            price=service.base_price,
            date=now,
            scheduled_at=scheduled_at,
            problem_description=data.description,
            address_label=data.addressLabel,
            latitude=data.lat,
            longitude=data.lng,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_history(self.db, booking.id, None, BookingStatus.PENDING.value, customer.id)

        provider_ids = find_eligible_provider_ids(self.db, service.id, data.lat, data.lng)
        offers = self.offers.create_offers(self.db, booking.id, provider_ids)
        self.db.commit()

        booking = self._load(booking.id)
        logger.info(f"✅ Booking {booking.id} created, offered to {len(provider_ids)} provider(s)")
        notification_service.notify_new_offer(booking, offers)
        return booking

    def _change_status(
        self,
        booking: Booking,
        from_statuses: list[str],
        to_status: str,
        actor: User,
        note: Optional[str] = None,
        **values,
    ) -> bool:
        """Apply a guarded transition; a lost race or wrong status leaves the booking untouched"""
        previous = booking.status
        if not self.repo.transition(self.db, booking.id, from_statuses, to_status, **values):
            self.db.rollback()
            return False

        self.repo.add_history(self.db, booking.id, previous, to_status, actor.id, note)
        if to_status == BookingStatus.CANCELLED.value:
            withdrawn = self.offers.get_sent_provider_ids(self.db, booking.id)
            self.offers.expire_open_offers(self.db, booking.id)
        else:
            withdrawn = []
        self.db.commit()

        self.db.refresh(booking)
        notification_service.notify_booking_status(booking, previous)
        if withdrawn:
            notification_service.notify_offer_withdrawn(booking, withdrawn)
        return True

    def start_job(self, booking_id: int, provider: User) -> Booking:
        booking = self.repo.get_provider_booking(self.db, booking_id, provider.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        if booking.status != BookingStatus.CONFIRMED.value:
            logger.info(f"ℹ️ Start ignored for booking {booking.id} in status {booking.status}")
            return self._load(booking.id)

        self._change_status(
            booking, [BookingStatus.CONFIRMED.value], BookingStatus.IN_PROGRESS.value, provider
        )
        return self._load(booking.id)

    def complete_job(self, booking_id: int, provider: User) -> Booking:
        booking = self.repo.get_provider_booking(self.db, booking_id, provider.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        if booking.status != BookingStatus.IN_PROGRESS.value:
            logger.info(f"ℹ️ Complete ignored for booking {booking.id} in status {booking.status}")
            return self._load(booking.id)

        self._change_status(
            booking, [BookingStatus.IN_PROGRESS.value], BookingStatus.COMPLETED.value, provider
        )
        return self._load(booking.id)

    def cancel_booking(self, booking_id: int, customer: User) -> Booking:
        """Customer cancels; outstanding offers expire"""
        booking = self.repo.get_customer_booking(self.db, booking_id, customer.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        if booking.status in TERMINAL_STATUSES:
            return self._load(booking.id)

        if self._change_status(
            booking, CANCELLABLE_STATUSES, BookingStatus.CANCELLED.value, customer
        ):
            logger.info(f"🚫 Booking {booking.id} cancelled by customer {customer.id}")
        return self._load(booking.id)

    def rate_booking(self, booking_id: int, data: RatingCreate, customer: User) -> Booking:
        booking = self.repo.get_customer_booking(self.db, booking_id, customer.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status != BookingStatus.COMPLETED.value or booking.provider_id is None:
            raise HTTPException(status_code=400, detail="Only completed bookings can be rated")
        if booking.rating is not None:
            raise HTTPException(status_code=409, detail="Booking already rated")

        self.repo.create_rating(
            self.db,
            booking_id=booking.id,
            customer_id=customer.id,
            provider_id=booking.provider_id,
            score=data.score,
            comment=data.comment,
        )
        logger.info(f"⭐ Booking {booking.id} rated {data.score} by customer {customer.id}")
        return self._load(booking.id)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def get_messages(self, booking_id: int, user: User) -> list[BookingMessage]:
        booking = self._get_participant_booking(booking_id, user)
        return self.repo.get_messages(self.db, booking.id)

    def send_message(self, booking_id: int, data: MessageCreate, user: User) -> BookingMessage:
        booking = self._get_participant_booking(booking_id, user)
        if booking.provider_id is None:
            raise HTTPException(status_code=400, detail="No provider assigned yet")

        message = self.repo.create_message(
            self.db, booking_id=booking.id, sender_id=user.id, body=data.body.strip()
        )
        notification_service.notify_chat_message(message)
        return message

    # ------------------------------------------------------------------
    # Parts and labour items
    # ------------------------------------------------------------------

    def get_items(self, booking_id: int, user: User) -> list[BookingItem]:
        booking = self._get_participant_booking(booking_id, user)
        return self.repo.get_items(self.db, booking.id)

    def _editable_job(self, booking_id: int, provider: User) -> Booking:
        booking = self.repo.get_provider_booking(self.db, booking_id, provider.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status not in ITEM_EDITABLE_STATUSES:
            raise HTTPException(status_code=400, detail="Items can only change on an active job")
        return booking

    def _recompute_price(self, booking: Booking) -> None:
        booking.price = round(
            booking.service.base_price + self.repo.get_items_total(self.db, booking.id), 2
        )
        booking.updated_at = utcnow()

    def add_item(self, booking_id: int, data: BookingItemCreate, provider: User) -> BookingItem:
        booking = self._editable_job(booking_id, provider)

        item = BookingItem(
            booking_id=booking.id,
            description=data.description.strip(),
            quantity=data.quantity,
            unit_price=data.unitPrice,
        )
        self.db.add(item)
        self.db.flush()
        self._recompute_price(booking)
        self.db.commit()
        self.db.refresh(item)
        self.db.refresh(booking)

        logger.info(f"🧾 Booking {booking.id} item added, price now {booking.price}")
        notification_service.notify_items_changed(booking, item)
        return item

    def delete_item(self, booking_id: int, item_id: int, provider: User) -> dict:
        booking = self._editable_job(booking_id, provider)
        item = self.repo.get_item(self.db, booking.id, item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Item not found")

        self.db.delete(item)
        self.db.flush()
        self._recompute_price(booking)
        self.db.commit()
        self.db.refresh(booking)

        notification_service.notify_items_changed(booking)
        return {"ok": True, "price": booking.price}

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def get_attachments(self, booking_id: int, user: User) -> list[BookingAttachment]:
        booking = self._get_participant_booking(booking_id, user)
        return self.repo.get_attachments(self.db, booking.id)

    def create_attachment_upload(
        self, booking_id: int, data: AttachmentUploadRequest, user: User
    ) -> tuple[str, BookingAttachment]:
        """Presign a direct-to-S3 upload and record the attachment"""
        booking = self._get_participant_booking(booking_id, user)

        content_type = data.contentType.lower().strip()
        if content_type not in ALLOWED_ATTACHMENT_MIME_TYPES:
            raise HTTPException(status_code=400, detail=f"Unsupported file type: {content_type}")

        key = generate_attachment_key(booking.id, user.id, data.filename)
        try:
            upload_url = get_presigned_put_url(key, content_type)
            public_url = public_url_for_key(key)
        except StorageNotConfiguredError as e:
            logger.error(f"❌ Attachment upload unavailable: {e}")
            raise HTTPException(status_code=503, detail="File storage is not configured") from e

        attachment = self.repo.create_attachment(
            self.db,
            booking_id=booking.id,
            uploader_id=user.id,
            key=key,
            url=public_url,
            content_type=content_type,
        )
        notification_service.notify_attachment(attachment)
        return upload_url, attachment


class OfferService:
    """Provider side of the broadcast: list, accept (first wins) and decline"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OfferRepository()
        self.bookings = BookingRepository()

    def _ttl_cutoff(self):
        return utcnow() - timedelta(seconds=config.OFFER_TTL_SECONDS)

    def list_offers(self, provider: User) -> list[dict]:
        offers = self.repo.get_open_offers(self.db, provider.id, self._ttl_cutoff())
        return [offer_payload(o) for o in offers]

    def accept_offer(self, booking_id: int, provider: User) -> Booking:
        """
        Claim a pending booking.

        Assignment is one conditional UPDATE on the booking row, so when
        several providers accept at once exactly one of them wins. Losers
        get 409 and their offer is expired.
        """
        offer = self.repo.get_offer(self.db, booking_id, provider.id)
        if not offer or offer.status != OfferStatus.SENT.value:
            raise HTTPException(status_code=404, detail="Offer not found or already responded")

        if offer.created_at <= self._ttl_cutoff():
            self.repo.respond(self.db, booking_id, provider.id, OfferStatus.EXPIRED.value)
            self.db.commit()
            logger.info(f"⌛ Provider {provider.id} tried to accept expired offer for booking {booking_id}")
            raise HTTPException(status_code=404, detail="Offer not found or already responded")

        won = self.bookings.transition(
            self.db,
            booking_id,
            [BookingStatus.PENDING.value],
            BookingStatus.CONFIRMED.value,
            unassigned_only=True,
            provider_id=provider.id,
        )
        if not won:
            self.db.rollback()
            self.repo.respond(self.db, booking_id, provider.id, OfferStatus.EXPIRED.value)
            self.db.commit()
            logger.info(f"🏁 Provider {provider.id} lost the race for booking {booking_id}")
            raise HTTPException(status_code=409, detail="Booking already taken")

        self.repo.respond(self.db, booking_id, provider.id, OfferStatus.ACCEPTED.value)
        withdrawn = self.repo.get_sent_provider_ids(self.db, booking_id, exclude_provider_id=provider.id)
        self.repo.expire_open_offers(self.db, booking_id, exclude_provider_id=provider.id)
        self.bookings.add_history(
            self.db,
            booking_id,
            BookingStatus.PENDING.value,
            BookingStatus.CONFIRMED.value,
            provider.id,
            note="Offer accepted",
        )
        self.db.commit()

        booking = self.bookings.get_booking(self.db, booking_id)
        logger.info(f"🤝 Booking {booking_id} confirmed by provider {provider.id}")
        notification_service.notify_booking_status(booking, BookingStatus.PENDING.value)
        notification_service.notify_offer_withdrawn(booking, withdrawn)
        return booking

    def decline_offer(self, booking_id: int, provider: User, reason: Optional[str] = None) -> dict:
        declined = self.repo.respond(
            self.db, booking_id, provider.id, OfferStatus.DECLINED.value, decline_reason=reason
        )
        self.db.commit()
        if declined:
            logger.info(f"🙅 Provider {provider.id} declined booking {booking_id}")
        return {"ok": True}
