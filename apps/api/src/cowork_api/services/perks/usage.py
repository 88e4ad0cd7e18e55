"""Usage aggregation over the append-only perk usage log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.domain.perks import UsagePeriods, ensure_aware
from cowork_api.models.membership import MembershipPerkUsage, PerkType

ZERO = Decimal("0")


class UsageAggregation(str, Enum):
    """How redemptions consume a perk's quota."""

    COUNTED = "counted"
    SUMMED = "summed"


_SUMMED_PERK_TYPES = frozenset({PerkType.MEETING_ROOM_HOURS})


@dataclass(frozen=True, slots=True)
class UsageTotals:
    today: Decimal = ZERO
    this_week: Decimal = ZERO
    this_month: Decimal = ZERO
    last_used_at: datetime | None = None


def _as_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True, slots=True)
class UsageMeter:
    """Aggregation strategy selected once per perk type.

    Discrete perks count one unit per record. Hour-based perks sum
    ``quantity_used`` so partial hours accumulate.
    """

    aggregation: UsageAggregation

    @classmethod
    def for_perk_type(cls, perk_type: PerkType) -> "UsageMeter":
        if perk_type in _SUMMED_PERK_TYPES:
            return cls(UsageAggregation.SUMMED)
        return cls(UsageAggregation.COUNTED)

    @property
    def is_summed(self) -> bool:
        return self.aggregation is UsageAggregation.SUMMED

    def _window_sum(self, start: datetime, end: datetime):
        in_window = and_(MembershipPerkUsage.used_at >= start, MembershipPerkUsage.used_at < end)
        measure = MembershipPerkUsage.quantity_used if self.is_summed else 1
        return func.coalesce(func.sum(case((in_window, measure), else_=0)), 0)

    async def measure(
        self,
        db: AsyncSession,
        *,
        membership_id: UUID,
        perk_id: UUID,
        periods: UsagePeriods,
    ) -> UsageTotals:
        """Today/week/month totals plus the latest usage, in one aggregate query."""

        stmt = select(
            self._window_sum(periods.utc(periods.day_start), periods.utc(periods.day_end)),
            self._window_sum(periods.utc(periods.week_start), periods.utc(periods.week_end)),
            self._window_sum(periods.utc(periods.month_start), periods.utc(periods.month_end)),
            func.max(MembershipPerkUsage.used_at),
        ).where(
            MembershipPerkUsage.membership_id == membership_id,
            MembershipPerkUsage.perk_id == perk_id,
        )
        row = (await db.execute(stmt)).one()
        today, this_week, this_month, last_used_at = row
        return UsageTotals(
            today=_as_decimal(today),
            this_week=_as_decimal(this_week),
            this_month=_as_decimal(this_month),
            last_used_at=ensure_aware(last_used_at) if last_used_at is not None else None,
        )
