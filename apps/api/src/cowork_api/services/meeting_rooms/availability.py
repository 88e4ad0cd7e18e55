"""Room booking conflicts and the bookable time-slot grid.

Times are zero-padded ``HH:MM`` strings, so lexical comparison matches
chronological order both in Python and in SQL.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from loguru import logger
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.core.settings import settings
from cowork_api.domain.perks import format_clock, parse_clock, parse_stored_clock
from cowork_api.models.meeting_room import MeetingRoom, MeetingRoomBooking, MeetingRoomBookingStatus

ACTIVE_BOOKING_STATUSES = (MeetingRoomBookingStatus.PENDING, MeetingRoomBookingStatus.CONFIRMED)


def intervals_overlap(existing_start: str, existing_end: str, new_start: str, new_end: str) -> bool:
    """True when ``[new_start, new_end)`` collides with an existing booking.

    Collides means the new start falls inside the existing booking, the new end
    falls inside it, or the new booking fully contains it. Touching endpoints
    do not collide.
    """

    return (
        (existing_start <= new_start < existing_end)
        or (existing_start < new_end <= existing_end)
        or (new_start <= existing_start and existing_end <= new_end)
    )


def _overlap_clause(new_start: str, new_end: str):
    return or_(
        and_(MeetingRoomBooking.start_time <= new_start, MeetingRoomBooking.end_time > new_start),
        and_(MeetingRoomBooking.start_time < new_end, MeetingRoomBooking.end_time >= new_end),
        and_(MeetingRoomBooking.start_time >= new_start, MeetingRoomBooking.end_time <= new_end),
    )


@dataclass(frozen=True, slots=True)
class BookedSlot:
    start_time: str
    end_time: str


@dataclass(frozen=True, slots=True)
class TimeSlot:
    time: str
    is_available: bool


@dataclass
class RoomAvailability:
    room: MeetingRoom
    booking_date: date
    open_time: str
    close_time: str
    booked_slots: list[BookedSlot]
    time_slots: list[TimeSlot]


def build_time_slots(
    open_time: str,
    close_time: str,
    booked: list[BookedSlot],
    *,
    step_minutes: int,
) -> list[TimeSlot]:
    """Slots every ``step_minutes`` from opening until closing (exclusive)."""

    start = parse_clock(open_time)
    end = parse_clock(close_time)
    start_minutes = start.hour * 60 + start.minute
    end_minutes = end.hour * 60 + end.minute

    slots: list[TimeSlot] = []
    for minutes in range(start_minutes, end_minutes, step_minutes):
        label = f"{minutes // 60:02d}:{minutes % 60:02d}"
        is_booked = any(slot.start_time <= label < slot.end_time for slot in booked)
        slots.append(TimeSlot(time=label, is_available=not is_booked))
    return slots


def _room_clock(room: MeetingRoom, value: str | None, default: str) -> str:
    if not value:
        return default
    try:
        return format_clock(parse_stored_clock(value))
    except ValueError:
        logger.warning("Using default room hours for unreadable value", room_id=str(room.id), value=value)
        return default


class MeetingRoomAvailabilityService:

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def get_room(self, room_id: UUID) -> MeetingRoom | None:
        return await self._db.get(MeetingRoom, room_id)

    async def count_conflicts(
        self,
        room_id: UUID,
        booking_date: date,
        start_time: str,
        end_time: str,
    ) -> int:
        """Count pending/confirmed bookings overlapping the requested interval."""

        stmt = select(func.count(MeetingRoomBooking.id)).where(
            MeetingRoomBooking.room_id == room_id,
            MeetingRoomBooking.booking_date == booking_date,
            MeetingRoomBooking.status.in_(ACTIVE_BOOKING_STATUSES),
            _overlap_clause(start_time, end_time),
        )
        conflicts = int((await self._db.execute(stmt)).scalar_one())
        if conflicts:
            logger.info(
                "Meeting room booking conflict detected",
                room_id=str(room_id),
                booking_date=booking_date.isoformat(),
                start_time=start_time,
                end_time=end_time,
                conflicts=conflicts,
            )
        return conflicts

    async def list_booked_slots(self, room_id: UUID, booking_date: date) -> list[BookedSlot]:
        stmt = (
            select(MeetingRoomBooking.start_time, MeetingRoomBooking.end_time)
            .where(
                MeetingRoomBooking.room_id == room_id,
                MeetingRoomBooking.booking_date == booking_date,
                MeetingRoomBooking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .order_by(MeetingRoomBooking.start_time.asc())
        )
        result = await self._db.execute(stmt)
        return [BookedSlot(start_time=start, end_time=end) for start, end in result.all()]

    async def availability(self, room: MeetingRoom, booking_date: date) -> RoomAvailability:
        booked = await self.list_booked_slots(room.id, booking_date)
        open_time = _room_clock(room, room.start_time, settings.meeting_room_default_open)
        close_time = _room_clock(room, room.end_time, settings.meeting_room_default_close)
        return RoomAvailability(
            room=room,
            booking_date=booking_date,
            open_time=open_time,
            close_time=close_time,
            booked_slots=booked,
            time_slots=build_time_slots(
                open_time,
                close_time,
                booked,
                step_minutes=settings.meeting_room_slot_minutes,
            ),
        )
