"""
Realtime notification fan-out
Turns booking workflow events into channel messages on the event bus so
WebSocket subscribers (customers, providers, map views) see them live
"""

import logging
from typing import Iterable, Optional

from ..config import OFFER_TTL_SECONDS
from ..events import EventBus, channels, event_bus
from ..models_booking import Booking, BookingAttachment, BookingItem, BookingMessage, BookingOffer
from ..shared.timeutils import isoformat_utc

logger = logging.getLogger(__name__)


def offer_payload(offer: BookingOffer) -> dict:
    """Shape shared by the offer list endpoint and the booking:new channel"""
    booking = offer.booking
    return {
        "id": offer.id,
        "bookingId": booking.id,
        "latitude": booking.latitude,
        "longitude": booking.longitude,
        "scheduledAt": isoformat_utc(booking.scheduled_at),
        "price": booking.price,
        "problem": booking.problem_description or "",
        "address": booking.address_label or "",
        "serviceName": booking.service.name if booking.service else "",
        "offeredAt": isoformat_utc(offer.created_at),
        "ttlMs": OFFER_TTL_SECONDS * 1000,
    }


def status_payload(booking: Booking, previous_status: Optional[str] = None) -> dict:
    return {
        "bookingId": booking.id,
        "status": booking.status,
        "previousStatus": previous_status,
        "providerId": booking.provider_id,
        "updatedAt": isoformat_utc(booking.updated_at),
    }


class NotificationService:
    """Publishes booking workflow events; delivery is best effort"""

    def __init__(self, bus: EventBus = event_bus):
        self.bus = bus

    def notify_new_offer(self, booking: Booking, offers: Iterable[BookingOffer]) -> int:
        reached = 0
        for offer in offers:
            reached += self.bus.publish(
                channels.booking_new(offer.provider_id), {"type": "offer.new", **offer_payload(offer)}
            )
        logger.info(f"📣 Booking {booking.id} offer broadcast reached {reached} live subscriber(s)")
        return reached

    def notify_offer_withdrawn(self, booking: Booking, provider_ids: Iterable[int]) -> None:
        """Tell providers still holding an offer that it is gone"""
        payload = {"type": "offer.withdrawn", "bookingId": booking.id}
        for provider_id in provider_ids:
            self.bus.publish(channels.booking_new(provider_id), payload)

    def notify_booking_status(self, booking: Booking, previous_status: Optional[str] = None) -> int:
        payload = {"type": "booking.status", **status_payload(booking, previous_status)}
        logger.info(f"📣 Booking {booking.id} status {previous_status} → {booking.status}")
        return self.bus.publish(channels.booking_status(booking.id), payload)

    def notify_provider_location(
        self, provider_id: int, lat: float, lng: float, is_available: bool
    ) -> int:
        return self.bus.publish(
            channels.provider_location(provider_id),
            {
                "providerId": provider_id,
                "lat": lat,
                "lng": lng,
                "isAvailable": is_available,
            },
        )

    def notify_chat_message(self, message: BookingMessage) -> int:
        return self.bus.publish(
            channels.booking_chat(message.booking_id),
            {
                "type": "chat.message",
                "id": message.id,
                "bookingId": message.booking_id,
                "senderId": message.sender_id,
                "body": message.body,
                "createdAt": isoformat_utc(message.created_at),
            },
        )

    def notify_items_changed(self, booking: Booking, item: Optional[BookingItem] = None) -> int:
        return self.bus.publish(
            channels.booking_items(booking.id),
            {
                "type": "items.changed",
                "bookingId": booking.id,
                "itemId": item.id if item else None,
                "price": booking.price,
            },
        )

    def notify_attachment(self, attachment: BookingAttachment) -> int:
        return self.bus.publish(
            channels.booking_attachments(attachment.booking_id),
            {
                "type": "attachment.added",
                "id": attachment.id,
                "bookingId": attachment.booking_id,
                "url": attachment.url,
                "contentType": attachment.content_type,
            },
        )


notification_service = NotificationService()
