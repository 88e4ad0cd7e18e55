"""Validate and record perk redemptions.

The processor never trusts an earlier availability evaluation: it reloads the
membership, recomputes usage from the log and re-runs the gating rules before
writing anything. Meeting-room-hours perks additionally book a room, and the
usage row and the booking are committed together.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from loguru import logger
from opentelemetry import trace
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.core.settings import settings
from cowork_api.domain.perks import minutes_between, parse_clock, resolve_timezone
from cowork_api.models.activity import ActivityAction
from cowork_api.models.meeting_room import (
    BookingPaymentStatus,
    MeetingRoom,
    MeetingRoomBooking,
    MeetingRoomBookingStatus,
)
from cowork_api.models.membership import Membership, MembershipPerkUsage, MembershipPlanPerk
from cowork_api.models.user import User
from cowork_api.observability.perks import PerkObservabilityStore, get_perk_store
from cowork_api.services.activity import ActivityLogger, ClientInfo
from cowork_api.services.meeting_rooms import MeetingRoomAvailabilityService
from cowork_api.services.memberships import MembershipService

from .errors import (
    PerkNotFoundError,
    PerkPersistenceError,
    PerkRuleViolation,
    PerkServiceError,
    PerkValidationError,
)
from .evaluator import build_perk_context
from .rules import REDEMPTION_GATES, PerkContext, PerkRule, first_rejection, format_quantity, remaining_after

tracer = trace.get_tracer(__name__)

_DURATION_TOLERANCE = Decimal("0.01")


@dataclass
class RedemptionRequest:
    """Member input for a redemption; booking fields apply to meeting-room hours."""

    notes: str | None = None
    room_id: UUID | None = None
    booking_date: str | date | None = None
    start_time: str | None = None
    end_time: str | None = None
    duration: Decimal | None = None
    number_of_attendees: int | None = None
    purpose: str | None = None


@dataclass
class PerkRedemptionResult:
    usage: MembershipPerkUsage
    perk: MembershipPlanPerk
    membership: Membership
    remaining_today: Decimal | None
    remaining_this_week: Decimal | None
    remaining_this_month: Decimal | None
    message: str
    booking: MeetingRoomBooking | None = None
    room: MeetingRoom | None = None


@dataclass(frozen=True)
class _BookingSlot:
    room_id: UUID
    booking_date: date
    start_time: str
    end_time: str
    duration: Decimal
    attendees: int


class PerkRedemptionProcessor:
    def __init__(
        self,
        db_session: AsyncSession,
        *,
        gates: tuple[PerkRule, ...] = REDEMPTION_GATES,
        timezone_name: str | None = None,
        activity_logger: ActivityLogger | None = None,
        store: PerkObservabilityStore | None = None,
    ) -> None:
        self._db = db_session
        self._gates = gates
        self._zone = resolve_timezone(timezone_name or settings.perks_timezone)
        self._activity = activity_logger or ActivityLogger(db_session)
        self._store = store or get_perk_store()
        self._memberships = MembershipService(db_session)
        self._rooms = MeetingRoomAvailabilityService(db_session)

    async def redeem(
        self,
        user: User,
        perk_id: UUID,
        request: RedemptionRequest,
        *,
        now: datetime,
        client: ClientInfo | None = None,
    ) -> PerkRedemptionResult:
        perk_type = "unknown"
        with tracer.start_as_current_span("perks.redeem") as span:
            span.set_attribute("perk.id", str(perk_id))
            try:
                membership = await self._memberships.find_active_membership(user.id, now=now, lock=True)
                if membership is None or membership.plan is None:
                    raise PerkValidationError("No active membership found")

                perk = next((item for item in membership.plan.perks if item.id == perk_id), None)
                if perk is None:
                    raise PerkNotFoundError("Perk not found in your membership plan")
                perk_type = perk.perk_type.value
                span.set_attribute("perk.type", perk_type)

                context = await build_perk_context(self._db, membership, perk, now=now, zone=self._zone)
                rejection = first_rejection(self._gates, context)
                if rejection is not None:
                    raise PerkRuleViolation(
                        rejection.rule,
                        rejection.reason,
                        next_available_at=rejection.next_available_at,
                    )

                if context.meter.is_summed:
                    result = await self._redeem_meeting_room_hours(user, context, request)
                else:
                    result = await self._redeem_generic(user, context, request)
            except PerkRuleViolation as exc:
                self._store.record_redemption(perk_type, f"rejected:{exc.rule}")
                logger.info(
                    "Perk redemption rejected",
                    user_id=str(user.id),
                    perk_id=str(perk_id),
                    rule=exc.rule,
                    reason=exc.message,
                )
                raise
            except PerkPersistenceError:
                self._store.record_redemption(perk_type, "failed")
                raise
            except PerkServiceError as exc:
                self._store.record_redemption(perk_type, "rejected:validation")
                logger.info(
                    "Perk redemption refused",
                    user_id=str(user.id),
                    perk_id=str(perk_id),
                    reason=exc.message,
                )
                raise
            except SQLAlchemyError as exc:
                self._store.record_redemption(perk_type, "failed")
                await self._db.rollback()
                logger.exception(
                    "Perk redemption lookup failed; rolled back",
                    user_id=str(user.id),
                    perk_id=str(perk_id),
                )
                raise PerkPersistenceError("Failed to redeem perk", detail=str(exc)) from exc

        self._store.record_redemption(perk_type, "redeemed")
        await self._log_activity(user, result, client)
        return result

    async def _redeem_generic(
        self,
        user: User,
        context: PerkContext,
        request: RedemptionRequest,
    ) -> PerkRedemptionResult:
        perk = context.perk
        usage = self._build_usage(
            user,
            context,
            quantity=Decimal("1"),
            notes=request.notes or f"Redeemed {perk.name}",
        )
        try:
            self._db.add(usage)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._rollback_failed_write(exc, context)

        logger.info(
            "Redeemed membership perk",
            user_id=str(user.id),
            membership_id=str(context.membership.id),
            perk_id=str(perk.id),
            usage_id=str(usage.id),
        )
        one = Decimal("1")
        return PerkRedemptionResult(
            usage=usage,
            perk=perk,
            membership=context.membership,
            remaining_today=remaining_after(perk.max_per_day, context.usage.today, one),
            remaining_this_week=remaining_after(perk.max_per_week, context.usage.this_week, one),
            remaining_this_month=remaining_after(perk.max_per_month, context.usage.this_month, one),
            message=f"Successfully redeemed: {perk.name}",
        )

    async def _redeem_meeting_room_hours(
        self,
        user: User,
        context: PerkContext,
        request: RedemptionRequest,
    ) -> PerkRedemptionResult:
        perk = context.perk
        slot = self._validate_booking_request(request)

        if slot.booking_date < context.periods.today:
            raise PerkValidationError("Cannot book a meeting room for a past date")

        used_today = context.usage.today
        available_hours = context.quantity - used_today
        if slot.duration > available_hours:
            raise PerkRuleViolation(
                "insufficient_hours",
                (
                    f"Insufficient hours. You requested {format_quantity(slot.duration)} hours "
                    f"but only {format_quantity(max(available_hours, Decimal('0')))} hours available."
                ),
            )
        if perk.max_per_day and used_today + slot.duration > perk.max_per_day:
            raise PerkRuleViolation(
                "daily",
                (
                    f"Daily limit exceeded. You can use up to {perk.max_per_day} {perk.unit} of this perk "
                    f"per day and have used {format_quantity(used_today)} today."
                ),
                next_available_at=context.periods.day_end,
            )

        room = await self._rooms.get_room(slot.room_id)
        if room is None:
            raise PerkNotFoundError("Meeting room not found")
        if not room.is_active:
            raise PerkValidationError("Meeting room is not available for booking")
        if room.capacity and slot.attendees > room.capacity:
            raise PerkValidationError(
                f"Room capacity is {room.capacity} people. Please select a larger room."
            )

        conflicts = await self._rooms.count_conflicts(
            room.id,
            slot.booking_date,
            slot.start_time,
            slot.end_time,
        )
        if conflicts:
            raise PerkRuleViolation(
                "booking_conflict",
                "The selected time slot conflicts with an existing booking",
            )

        usage = self._build_usage(
            user,
            context,
            quantity=slot.duration,
            notes=request.notes
            or f"Booked {room.name} on {slot.booking_date.isoformat()} {slot.start_time}-{slot.end_time}",
        )
        booking = MeetingRoomBooking(
            user_id=user.id,
            room_id=room.id,
            booking_date=slot.booking_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration=slot.duration,
            number_of_attendees=slot.attendees,
            purpose=request.purpose,
            notes=request.notes,
            status=MeetingRoomBookingStatus.CONFIRMED,
            payment_status=BookingPaymentStatus.WAIVED,
            total_amount=Decimal("0"),
        )
        try:
            self._db.add(usage)
            await self._db.flush()
            booking.usage_id = usage.id
            self._db.add(booking)
            await self._db.flush()
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._rollback_failed_write(exc, context)

        logger.info(
            "Booked meeting room with perk hours",
            user_id=str(user.id),
            membership_id=str(context.membership.id),
            perk_id=str(perk.id),
            usage_id=str(usage.id),
            booking_id=str(booking.id),
            hours=str(slot.duration),
        )
        return PerkRedemptionResult(
            usage=usage,
            perk=perk,
            membership=context.membership,
            booking=booking,
            room=room,
            remaining_today=available_hours - slot.duration,
            remaining_this_week=remaining_after(perk.max_per_week, context.usage.this_week, slot.duration),
            remaining_this_month=remaining_after(perk.max_per_month, context.usage.this_month, slot.duration),
            message=(
                f"Booked {room.name} on {slot.booking_date.isoformat()} "
                f"from {slot.start_time} to {slot.end_time}"
            ),
        )

    @staticmethod
    def _validate_booking_request(request: RedemptionRequest) -> _BookingSlot:
        missing = [
            label
            for label, value in (
                ("roomId", request.room_id),
                ("bookingDate", request.booking_date),
                ("startTime", request.start_time),
                ("endTime", request.end_time),
                ("duration", request.duration),
            )
            if value in (None, "")
        ]
        if missing:
            raise PerkValidationError(f"Missing required booking details: {', '.join(missing)}")

        try:
            duration = Decimal(str(request.duration))
        except (InvalidOperation, ValueError) as exc:
            raise PerkValidationError("Duration must be a number of hours") from exc
        if not duration.is_finite() or duration <= 0:
            raise PerkValidationError("Duration must be greater than zero")

        try:
            start = parse_clock(request.start_time)
            end = parse_clock(request.end_time)
        except ValueError as exc:
            raise PerkValidationError("Start and end times must use HH:MM format") from exc
        if end <= start:
            raise PerkValidationError("End time must be after start time")
        slot_hours = Decimal(minutes_between(start, end)) / Decimal(60)
        if abs(slot_hours - duration) > _DURATION_TOLERANCE:
            raise PerkValidationError("Duration does not match the selected time slot")

        booking_date = request.booking_date
        if not isinstance(booking_date, date):
            try:
                booking_date = date.fromisoformat(str(booking_date).strip()[:10])
            except ValueError as exc:
                raise PerkValidationError("Booking date must be a valid date (YYYY-MM-DD)") from exc

        attendees = request.number_of_attendees if request.number_of_attendees is not None else 1
        if attendees <= 0:
            raise PerkValidationError("Number of attendees must be at least 1")

        return _BookingSlot(
            room_id=request.room_id,
            booking_date=booking_date,
            start_time=f"{start.hour:02d}:{start.minute:02d}",
            end_time=f"{end.hour:02d}:{end.minute:02d}",
            duration=duration,
            attendees=attendees,
        )

    @staticmethod
    def _build_usage(
        user: User,
        context: PerkContext,
        *,
        quantity: Decimal,
        notes: str,
    ) -> MembershipPerkUsage:
        perk = context.perk
        return MembershipPerkUsage(
            membership_id=context.membership.id,
            perk_id=perk.id,
            user_id=user.id,
            perk_type=perk.perk_type,
            perk_name=perk.name,
            quantity_used=quantity,
            unit=perk.unit,
            notes=notes,
            used_at=context.now.astimezone(timezone.utc),
        )

    async def _rollback_failed_write(self, exc: SQLAlchemyError, context: PerkContext) -> None:
        membership_id = str(context.membership.id)
        perk_id = str(context.perk.id)
        await self._db.rollback()
        logger.exception(
            "Perk redemption write failed; rolled back",
            membership_id=membership_id,
            perk_id=perk_id,
        )
        raise PerkPersistenceError("Failed to redeem perk", detail=str(exc)) from exc

    async def _log_activity(
        self,
        user: User,
        result: PerkRedemptionResult,
        client: ClientInfo | None,
    ) -> None:
        metadata: dict[str, Any] = {
            "perkId": str(result.perk.id),
            "perkType": result.perk.perk_type.value,
            "membershipId": str(result.membership.id),
            "quantityUsed": str(result.usage.quantity_used),
        }
        if result.booking is not None:
            metadata["bookingId"] = str(result.booking.id)
            action = ActivityAction.MEETING_ROOM_BOOKED
            reference_id = str(result.booking.id)
            reference_type = "meeting_room_booking"
        else:
            action = ActivityAction.PERK_REDEEMED
            reference_id = str(result.usage.id)
            reference_type = "membership_perk_usage"

        entry = await self._activity.log_user_activity(
            user.id,
            action,
            result.message,
            reference_id=reference_id,
            reference_type=reference_type,
            metadata=metadata,
            client=client,
        )
        if entry is None:
            # The activity rollback expired every loaded instance.
            for instance in (result.usage, result.perk, result.membership, result.booking, result.room, user):
                if instance is not None and instance in self._db:
                    await self._db.refresh(instance)
