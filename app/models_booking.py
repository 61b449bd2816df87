"""
Booking, offer and job-execution models
"""

import enum

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .shared.timeutils import utcnow


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class JobType(str, enum.Enum):
    ON_DEMAND = "ON_DEMAND"
    SCHEDULED = "SCHEDULED"


class OfferStatus(str, enum.Enum):
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class Booking(Base):
    """A customer's service request"""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Null until a provider accepts an offer
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Status workflow: PENDING → CONFIRMED → IN_PROGRESS → COMPLETED
    # CANCELLED is reachable from any non-terminal status (customer action)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False, index=True)
    job_type = Column(String(20), default=JobType.ON_DEMAND.value, nullable=False)

    price = Column(Float, nullable=False)
    date = Column(DateTime, default=utcnow, nullable=False)
    scheduled_at = Column(DateTime, nullable=True)
    problem_description = Column(Text, nullable=True)
    address_label = Column(String(200), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    cancellation_fee = Column(Float, nullable=True)
    decline_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    vehicle = relationship("Vehicle")
    service = relationship("Service")
    offers = relationship("BookingOffer", back_populates="booking", cascade="all, delete-orphan")
    rating = relationship(
        "Rating", back_populates="booking", uselist=False, cascade="all, delete-orphan"
    )
    status_history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStatusHistory.id",
    )
    messages = relationship(
        "BookingMessage",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingMessage.id",
    )
    items = relationship(
        "BookingItem",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItem.id",
    )
    attachments = relationship(
        "BookingAttachment",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingAttachment.id",
    )


class BookingOffer(Base):
    """Broadcast invitation sent to one provider for a pending booking"""

    __tablename__ = "booking_offers"
    __table_args__ = (UniqueConstraint("booking_id", "provider_id", name="uq_booking_offer"),)

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), default=OfferStatus.SENT.value, nullable=False, index=True)
    decline_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    responded_at = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="offers")
    provider = relationship("User")


class BookingStatusHistory(Base):
    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    from_status = Column(String(20), nullable=True)  # None for creation
    to_status = Column(String(20), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="status_history")


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="rating")


class BookingMessage(Base):
    """Chat message between the customer and the assigned provider"""

    __tablename__ = "booking_messages"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="messages")


class BookingItem(Base):
    """Part or extra labour line added by the provider during the job"""

    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="items")


class BookingAttachment(Base):
    __tablename__ = "booking_attachments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    uploader_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    key = Column(String(500), nullable=False)  # S3 object key
    url = Column(String(1000), nullable=False)
    content_type = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="attachments")
