"""Meeting room availability grid for booking with perk hours."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.api.dependencies.session import require_member_session
from cowork_api.db.session import get_session
from cowork_api.schemas.envelope import ApiEnvelope
from cowork_api.schemas.meeting_rooms import (
    BookedSlotResponse,
    RoomAvailabilityData,
    RoomSummary,
    TimeSlotResponse,
)
from cowork_api.services.meeting_rooms import MeetingRoomAvailabilityService


router = APIRouter(
    prefix="/meeting-rooms",
    tags=["Meeting Rooms"],
    dependencies=[Depends(require_member_session)],
)


@router.get(
    "/{room_id}/availability",
    response_model=ApiEnvelope[RoomAvailabilityData],
    summary="Booked and free slots for a room on a date",
)
async def get_room_availability(
    room_id: UUID,
    booking_date: str = Query(..., alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_session),
) -> ApiEnvelope[RoomAvailabilityData]:
    try:
        day = date.fromisoformat(booking_date)
    except ValueError as error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format. Use YYYY-MM-DD",
        ) from error

    service = MeetingRoomAvailabilityService(db)
    room = await service.get_room(room_id)
    if room is None or not room.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting room not found")

    availability = await service.availability(room, day)
    return ApiEnvelope(
        data=RoomAvailabilityData(
            room=RoomSummary(
                id=room.id,
                name=room.name,
                description=room.description,
                capacity=room.capacity,
                openTime=availability.open_time,
                closeTime=availability.close_time,
            ),
            bookingDate=day,
            bookedSlots=[
                BookedSlotResponse(startTime=slot.start_time, endTime=slot.end_time)
                for slot in availability.booked_slots
            ],
            timeSlots=[
                TimeSlotResponse(time=slot.time, isAvailable=slot.is_available)
                for slot in availability.time_slots
            ],
        )
    )
