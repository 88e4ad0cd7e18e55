"""Meeting room availability and conflict detection."""

from .availability import (  # noqa: F401
    ACTIVE_BOOKING_STATUSES,
    BookedSlot,
    MeetingRoomAvailabilityService,
    RoomAvailability,
    TimeSlot,
    build_time_slots,
    intervals_overlap,
)

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "BookedSlot",
    "MeetingRoomAvailabilityService",
    "RoomAvailability",
    "TimeSlot",
    "build_time_slots",
    "intervals_overlap",
]
