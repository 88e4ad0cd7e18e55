from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

# meta: schema: membership-perks


class MembershipSummary(BaseModel):
    id: UUID
    planName: str
    status: str
    startDate: datetime
    endDate: Optional[datetime]


class PerkStatusItem(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    type: str
    quantity: float
    unit: str
    maxPerDay: Optional[int]
    maxPerWeek: Optional[int]
    maxPerMonth: Optional[int]
    daysOfWeek: list[int]
    isRecurring: bool
    validFrom: Optional[str]
    validUntil: Optional[str]
    isAvailable: bool
    unavailableReason: Optional[str]
    nextAvailableAt: Optional[datetime]
    usedToday: float
    usedThisWeek: float
    usedThisMonth: float
    remainingToday: Optional[float]
    lastUsedAt: Optional[datetime]


class PerkStatusData(BaseModel):
    membership: Optional[MembershipSummary]
    perks: list[PerkStatusItem] = Field(default_factory=list)


class RedeemPerkRequest(BaseModel):
    notes: Optional[str] = Field(None, description="Free-form note stored with the usage record")
    roomId: Optional[UUID] = Field(None, description="Meeting room to book (meeting-room-hours perks)")
    bookingDate: Optional[date] = Field(None, description="Booking date, YYYY-MM-DD")
    startTime: Optional[str] = Field(None, description="Booking start, HH:MM")
    endTime: Optional[str] = Field(None, description="Booking end, HH:MM")
    duration: Optional[Decimal] = Field(None, description="Hours requested")
    numberOfAttendees: Optional[int] = Field(None, description="Expected attendees")
    purpose: Optional[str] = None


class RedeemedPerk(BaseModel):
    id: UUID
    name: str
    type: str
    unit: str


class BookingSummary(BaseModel):
    id: UUID
    roomId: UUID
    roomName: Optional[str]
    bookingDate: date
    startTime: str
    endTime: str
    duration: float
    numberOfAttendees: int
    status: str
    paymentStatus: str
    totalAmount: float


class RedemptionData(BaseModel):
    usageId: UUID
    perk: RedeemedPerk
    usedAt: datetime
    quantityUsed: float
    remainingToday: Optional[float]
    remainingThisWeek: Optional[float]
    remainingThisMonth: Optional[float]
    message: str
    booking: Optional[BookingSummary] = None


class UsageRecord(BaseModel):
    id: UUID
    perkId: UUID
    perkName: str
    perkType: str
    quantityUsed: float
    unit: str
    notes: Optional[str]
    usedAt: datetime


class UsageHistoryData(BaseModel):
    membershipId: Optional[UUID]
    usage: list[UsageRecord] = Field(default_factory=list)
