"""Ordered usage rules for membership perks.

Each rule inspects a ``PerkContext`` and either passes (returns ``None``) or
returns a ``PerkRejection`` with a member-facing reason. Rules are evaluated in
tuple order and the first rejection wins, so the order below is the priority
contract: weekday, time window, monthly, weekly, daily, remaining quantity,
membership expiry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Callable, Iterable, Protocol

from loguru import logger

from cowork_api.domain.perks import (
    UsagePeriods,
    WeekdaySet,
    ensure_aware,
    format_clock,
    parse_clock,
    parse_stored_clock,
)
from cowork_api.models.membership import Membership, MembershipPlanPerk

from .usage import UsageMeter, UsageTotals


@dataclass(frozen=True, slots=True)
class PerkRejection:
    rule: str
    reason: str
    next_available_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PerkContext:
    """Everything a rule may look at, resolved once per perk evaluation."""

    perk: MembershipPlanPerk
    membership: Membership
    periods: UsagePeriods
    usage: UsageTotals
    meter: UsageMeter
    weekdays: WeekdaySet
    window: tuple[time, time] | None

    @property
    def now(self) -> datetime:
        return self.periods.now

    @property
    def quantity(self) -> Decimal:
        return Decimal(str(self.perk.quantity or 0))


def time_window(perk: MembershipPlanPerk) -> tuple[time, time] | None:
    """Parsed ``(valid_from, valid_until)`` when both bounds are set.

    An unreadable bound is logged and the window is ignored.
    """

    if not perk.valid_from or not perk.valid_until:
        return None
    try:
        return parse_stored_clock(perk.valid_from), parse_stored_clock(perk.valid_until)
    except ValueError:
        logger.warning(
            "Ignoring unreadable perk time window",
            perk_id=str(perk.id),
            valid_from=perk.valid_from,
            valid_until=perk.valid_until,
        )
        return None



def format_quantity(value: Decimal | int | float) -> str:
    return f"{Decimal(str(value)).normalize():f}"


class PerkRule(Protocol):
    name: str

    def check(self, context: PerkContext) -> PerkRejection | None:
        ...


class DayOfWeekRule:
    name = "day_of_week"

    def check(self, context: PerkContext) -> PerkRejection | None:
        weekdays = context.weekdays
        if weekdays.allows(context.periods.today):
            return None
        next_day = weekdays.next_allowed(context.periods.today)
        next_available_at = None
        if next_day is not None:
            next_available_at = datetime.combine(next_day, time.min, tzinfo=context.now.tzinfo)
        return PerkRejection(
            rule=self.name,
            reason=f"This perk is only available on: {', '.join(weekdays.names())}",
            next_available_at=next_available_at,
        )


class TimeWindowRule:
    name = "time_window"

    def check(self, context: PerkContext) -> PerkRejection | None:
        if context.window is None:
            return None
        valid_from, valid_until = context.window
        current = parse_clock(format_clock(context.now))
        if valid_from <= current <= valid_until:
            return None
        return PerkRejection(
            rule=self.name,
            reason=(
                "This perk is only available between "
                f"{format_clock(valid_from)} and {format_clock(valid_until)}"
            ),
        )


def _next_month_start(context: PerkContext) -> datetime:
    month_end = context.periods.month_end
    if context.weekdays.is_unrestricted:
        return month_end
    first_allowed = context.weekdays.next_allowed(month_end.date(), inclusive=True)
    return datetime.combine(first_allowed, time.min, tzinfo=month_end.tzinfo)


def _next_week_start(context: PerkContext) -> datetime:
    return context.periods.week_end


def _next_day_start(context: PerkContext) -> datetime:
    return context.periods.day_end


@dataclass(frozen=True)
class UsageCapRule:
    """Reject once usage in a period reaches the perk's cap for that period."""

    name: str
    label: str
    cap: Callable[[MembershipPlanPerk], int | None]
    used: Callable[[UsageTotals], Decimal]
    next_available: Callable[[PerkContext], datetime]

    def check(self, context: PerkContext) -> PerkRejection | None:
        cap = self.cap(context.perk)
        if not cap:
            return None
        if self.used(context.usage) < cap:
            return None
        if context.meter.is_summed:
            allowance = f"You can use up to {cap} {context.perk.unit} of this perk per {self.label}."
        else:
            allowance = f"You can use this perk {cap} time(s) per {self.label}."
        return PerkRejection(
            rule=self.name,
            reason=f"{self.name.capitalize()} limit reached. {allowance}",
            next_available_at=self.next_available(context),
        )


class RemainingQuantityRule:
    """Hour-based perks stop once today's allotment is consumed."""

    name = "remaining_quantity"

    def check(self, context: PerkContext) -> PerkRejection | None:
        if not context.meter.is_summed:
            return None
        remaining = context.quantity - context.usage.today
        if remaining > 0:
            return None
        if context.perk.is_recurring:
            return PerkRejection(
                rule=self.name,
                reason="No hours remaining today",
                next_available_at=context.periods.day_end,
            )
        return PerkRejection(rule=self.name, reason="All hours used")


class MembershipExpiryRule:
    name = "membership_expired"

    def check(self, context: PerkContext) -> PerkRejection | None:
        end_date = context.membership.end_date
        if end_date is None or ensure_aware(end_date) >= context.now:
            return None
        return PerkRejection(rule=self.name, reason="Membership expired")


MONTHLY_CAP = UsageCapRule(
    name="monthly",
    label="month",
    cap=lambda perk: perk.max_per_month,
    used=lambda usage: usage.this_month,
    next_available=_next_month_start,
)
WEEKLY_CAP = UsageCapRule(
    name="weekly",
    label="week",
    cap=lambda perk: perk.max_per_week,
    used=lambda usage: usage.this_week,
    next_available=_next_week_start,
)
DAILY_CAP = UsageCapRule(
    name="daily",
    label="day",
    cap=lambda perk: perk.max_per_day,
    used=lambda usage: usage.today,
    next_available=_next_day_start,
)

# Rules re-checked on every redemption attempt.
REDEMPTION_GATES: tuple[PerkRule, ...] = (
    DayOfWeekRule(),
    TimeWindowRule(),
    MONTHLY_CAP,
    WEEKLY_CAP,
    DAILY_CAP,
)

AVAILABILITY_RULES: tuple[PerkRule, ...] = REDEMPTION_GATES + (
    RemainingQuantityRule(),
    MembershipExpiryRule(),
)


def first_rejection(rules: Iterable[PerkRule], context: PerkContext) -> PerkRejection | None:
    for rule in rules:
        rejection = rule.check(context)
        if rejection is not None:
            return rejection
    return None


def remaining_after(cap: int | None, used: Decimal, consumed: Decimal) -> Decimal | None:
    """Quota left for a period once ``consumed`` more units are recorded."""

    if not cap:
        return None
    return Decimal(cap) - (used + consumed)

