from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class RoomSummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    capacity: int
    openTime: str
    closeTime: str


class BookedSlotResponse(BaseModel):
    startTime: str
    endTime: str


class TimeSlotResponse(BaseModel):
    time: str
    isAvailable: bool


class RoomAvailabilityData(BaseModel):
    room: RoomSummary
    bookingDate: date
    bookedSlots: list[BookedSlotResponse]
    timeSlots: list[TimeSlotResponse]
