"""Meeting rooms and their bookings."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cowork_api.db.base import Base


class MeetingRoomBookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    WAIVED = "waived"


class MeetingRoom(Base):
    """Bookable room with operating hours."""

    __tablename__ = "meeting_rooms"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False, default=1, server_default="1")
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0, server_default="0")
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship("MeetingRoomBooking", back_populates="room")


class MeetingRoomBooking(Base):
    """Room reservation; perk-funded bookings reference their usage record."""

    __tablename__ = "meeting_room_bookings"
    __table_args__ = (
        Index("ix_meeting_room_bookings_room_date", "room_id", "booking_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id = Column(UUID(as_uuid=True), ForeignKey("meeting_rooms.id"), nullable=False)
    usage_id = Column(
        UUID(as_uuid=True),
        ForeignKey("membership_perk_usages.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration = Column(Numeric(5, 2), nullable=False)
    number_of_attendees = Column(Integer, nullable=False, default=1, server_default="1")
    purpose = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(
        SqlEnum(MeetingRoomBookingStatus, name="meeting_room_booking_status"),
        nullable=False,
        default=MeetingRoomBookingStatus.PENDING,
        server_default=MeetingRoomBookingStatus.PENDING.name,
    )
    payment_status = Column(
        SqlEnum(BookingPaymentStatus, name="meeting_room_booking_payment_status"),
        nullable=False,
        default=BookingPaymentStatus.UNPAID,
        server_default=BookingPaymentStatus.UNPAID.name,
    )
    total_amount = Column(Numeric(10, 2), nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    room = relationship("MeetingRoom", back_populates="bookings")
    usage = relationship("MembershipPerkUsage")
