from datetime import date
from decimal import Decimal

import pytest

from cowork_api.core.settings import settings
from cowork_api.models import MeetingRoomBooking, MeetingRoomBookingStatus
from cowork_api.services.meeting_rooms import (
    BookedSlot,
    MeetingRoomAvailabilityService,
    build_time_slots,
    intervals_overlap,
)

from conftest import FROZEN_NOW

DAY = date(2026, 10, 20)


@pytest.mark.parametrize(
    "new_start, new_end, expected",
    [
        ("10:30", "11:30", True),  # starts inside
        ("09:30", "10:30", True),  # ends inside
        ("09:00", "12:00", True),  # contains
        ("10:15", "10:45", True),  # inside
        ("10:00", "11:00", True),  # identical
        ("11:00", "12:00", False),  # touches end
        ("09:00", "10:00", False),  # touches start
        ("12:00", "13:00", False),
    ],
)
def test_intervals_overlap_against_ten_to_eleven(new_start, new_end, expected) -> None:
    assert intervals_overlap("10:00", "11:00", new_start, new_end) is expected


def test_time_slots_mark_booked_half_hours() -> None:
    slots = build_time_slots(
        "09:00",
        "12:00",
        [BookedSlot("10:00", "11:00")],
        step_minutes=30,
    )

    assert [slot.time for slot in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
    assert [slot.time for slot in slots if not slot.is_available] == ["10:00", "10:30"]


def test_time_slots_respect_custom_step() -> None:
    slots = build_time_slots("09:00", "10:00", [], step_minutes=15)
    assert [slot.time for slot in slots] == ["09:00", "09:15", "09:30", "09:45"]


@pytest.mark.asyncio
async def test_availability_lists_active_bookings_in_order(session_factory, seed_member, seed_room) -> None:
    seeded = await seed_member()
    room = await seed_room(start_time="08:00", end_time="12:00")
    async with session_factory() as session:
        for start, end, status in (
            ("10:00", "11:00", MeetingRoomBookingStatus.CONFIRMED),
            ("08:30", "09:00", MeetingRoomBookingStatus.PENDING),
            ("11:00", "12:00", MeetingRoomBookingStatus.CANCELLED),
        ):
            session.add(
                MeetingRoomBooking(
                    user_id=seeded.user.id,
                    room_id=room.id,
                    booking_date=DAY,
                    start_time=start,
                    end_time=end,
                    duration=Decimal("1"),
                    status=status,
                )
            )
        await session.commit()

    async with session_factory() as session:
        service = MeetingRoomAvailabilityService(session)
        availability = await service.availability(await service.get_room(room.id), DAY)
        conflicts = await service.count_conflicts(room.id, DAY, "10:30", "11:30")
        other_day = await service.count_conflicts(room.id, date(2026, 10, 21), "10:30", "11:30")

    assert availability.booked_slots == [BookedSlot("08:30", "09:00"), BookedSlot("10:00", "11:00")]
    assert (availability.open_time, availability.close_time) == ("08:00", "12:00")
    unavailable = [slot.time for slot in availability.time_slots if not slot.is_available]
    assert unavailable == ["08:30", "10:00", "10:30"]
    assert conflicts == 1
    assert other_day == 0


@pytest.mark.asyncio
async def test_availability_defaults_to_configured_opening_hours(session_factory, seed_room) -> None:
    room = await seed_room()

    async with session_factory() as session:
        service = MeetingRoomAvailabilityService(session)
        availability = await service.availability(await service.get_room(room.id), FROZEN_NOW.date())

    assert availability.time_slots[0].time == settings.meeting_room_default_open
    assert availability.close_time == settings.meeting_room_default_close
    assert all(slot.is_available for slot in availability.time_slots)


@pytest.mark.asyncio
async def test_availability_normalizes_unpadded_room_hours(session_factory, seed_room) -> None:
    room = await seed_room(start_time="8:00", end_time="9:30")
    broken = await seed_room(name="Phone Booth", start_time="early", end_time="late")

    async with session_factory() as session:
        service = MeetingRoomAvailabilityService(session)
        availability = await service.availability(await service.get_room(room.id), DAY)
        fallback = await service.availability(await service.get_room(broken.id), DAY)

    assert (availability.open_time, availability.close_time) == ("08:00", "09:30")
    assert [slot.time for slot in availability.time_slots] == ["08:00", "08:30", "09:00"]
    assert fallback.open_time == settings.meeting_room_default_open
    assert fallback.close_time == settings.meeting_room_default_close
