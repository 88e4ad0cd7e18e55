"""Member perk availability, redemption and usage history."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.api.dependencies.clock import get_now
from cowork_api.api.dependencies.session import require_member_session
from cowork_api.core.settings import settings
from cowork_api.db.session import get_session
from cowork_api.domain.perks import WeekdaySet, ensure_aware
from cowork_api.models.membership import Membership, MembershipPerkUsage
from cowork_api.models.user import User
from cowork_api.schemas.envelope import ApiEnvelope
from cowork_api.schemas.perks import (
    BookingSummary,
    MembershipSummary,
    PerkStatusData,
    PerkStatusItem,
    RedeemedPerk,
    RedeemPerkRequest,
    RedemptionData,
    UsageHistoryData,
    UsageRecord,
)
from cowork_api.services.activity import ClientInfo
from cowork_api.services.perks import (
    PerkAvailability,
    PerkAvailabilityEvaluator,
    PerkRedemptionProcessor,
    PerkRedemptionResult,
    PerkUsageHistoryService,
    RedemptionRequest,
)


router = APIRouter(prefix="/user/perks", tags=["Perks"])


def _as_float(value: Decimal | int | float | None) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _membership_summary(membership: Membership) -> MembershipSummary:
    return MembershipSummary(
        id=membership.id,
        planName=membership.plan.name,
        status=membership.status.value,
        startDate=ensure_aware(membership.start_date),
        endDate=ensure_aware(membership.end_date) if membership.end_date else None,
    )


def _perk_status(item: PerkAvailability) -> PerkStatusItem:
    perk = item.perk
    return PerkStatusItem(
        id=perk.id,
        name=perk.name,
        description=perk.description,
        type=perk.perk_type.value,
        quantity=float(perk.quantity or 0),
        unit=perk.unit,
        maxPerDay=perk.max_per_day,
        maxPerWeek=perk.max_per_week,
        maxPerMonth=perk.max_per_month,
        daysOfWeek=WeekdaySet.parse(perk.days_of_week).days(),
        isRecurring=bool(perk.is_recurring),
        validFrom=perk.valid_from,
        validUntil=perk.valid_until,
        isAvailable=item.is_available,
        unavailableReason=item.unavailable_reason,
        nextAvailableAt=item.next_available_at,
        usedToday=float(item.used_today),
        usedThisWeek=float(item.used_this_week),
        usedThisMonth=float(item.used_this_month),
        remainingToday=_as_float(item.remaining_today),
        lastUsedAt=item.last_used_at,
    )


def _redemption_data(result: PerkRedemptionResult) -> RedemptionData:
    booking = None
    if result.booking is not None:
        booking = BookingSummary(
            id=result.booking.id,
            roomId=result.booking.room_id,
            roomName=result.room.name if result.room is not None else None,
            bookingDate=result.booking.booking_date,
            startTime=result.booking.start_time,
            endTime=result.booking.end_time,
            duration=float(result.booking.duration),
            numberOfAttendees=result.booking.number_of_attendees,
            status=result.booking.status.value,
            paymentStatus=result.booking.payment_status.value,
            totalAmount=float(result.booking.total_amount),
        )
    return RedemptionData(
        usageId=result.usage.id,
        perk=RedeemedPerk(
            id=result.perk.id,
            name=result.perk.name,
            type=result.perk.perk_type.value,
            unit=result.perk.unit,
        ),
        usedAt=ensure_aware(result.usage.used_at),
        quantityUsed=float(result.usage.quantity_used),
        remainingToday=_as_float(result.remaining_today),
        remainingThisWeek=_as_float(result.remaining_this_week),
        remainingThisMonth=_as_float(result.remaining_this_month),
        message=result.message,
        booking=booking,
    )


def _usage_record(usage: MembershipPerkUsage) -> UsageRecord:
    return UsageRecord(
        id=usage.id,
        perkId=usage.perk_id,
        perkName=usage.perk_name,
        perkType=usage.perk_type.value,
        quantityUsed=float(usage.quantity_used),
        unit=usage.unit,
        notes=usage.notes,
        usedAt=ensure_aware(usage.used_at),
    )


@router.get("", response_model=ApiEnvelope[PerkStatusData], summary="List perks with availability")
async def list_member_perks(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> ApiEnvelope[PerkStatusData]:
    report = await PerkAvailabilityEvaluator(db).evaluate_user(user.id, now=now)
    if report.membership is None:
        return ApiEnvelope(data=PerkStatusData(membership=None, perks=[]))
    return ApiEnvelope(
        data=PerkStatusData(
            membership=_membership_summary(report.membership),
            perks=[_perk_status(item) for item in report.perks],
        )
    )


@router.get("/usage", response_model=ApiEnvelope[UsageHistoryData], summary="Perk usage history")
async def list_perk_usage(
    limit: Optional[int] = Query(None, ge=1, le=200),
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> ApiEnvelope[UsageHistoryData]:
    membership, usage = await PerkUsageHistoryService(db).list_usage(
        user.id,
        now=now,
        limit=limit or settings.perk_usage_history_limit,
    )
    return ApiEnvelope(
        data=UsageHistoryData(
            membershipId=membership.id if membership else None,
            usage=[_usage_record(item) for item in usage],
        )
    )


@router.post(
    "/{perk_id}/redeem",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiEnvelope[RedemptionData],
    summary="Redeem a membership perk",
)
async def redeem_perk(
    perk_id: UUID,
    request: Request,
    payload: RedeemPerkRequest | None = None,
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> ApiEnvelope[RedemptionData]:
    payload = payload or RedeemPerkRequest()
    processor = PerkRedemptionProcessor(db)
    result = await processor.redeem(
        user,
        perk_id,
        RedemptionRequest(
            notes=payload.notes,
            room_id=payload.roomId,
            booking_date=payload.bookingDate,
            start_time=payload.startTime,
            end_time=payload.endTime,
            duration=payload.duration,
            number_of_attendees=payload.numberOfAttendees,
            purpose=payload.purpose,
        ),
        now=now,
        client=ClientInfo.from_request(request),
    )
    return ApiEnvelope(data=_redemption_data(result))
