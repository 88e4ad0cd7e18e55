"""Per-perk availability for a member's active membership."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from decimal import Decimal
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.core.settings import settings
from cowork_api.domain.perks import WeekdaySet, resolve_timezone, usage_periods
from cowork_api.models.membership import Membership, MembershipPlanPerk
from cowork_api.observability.perks import PerkObservabilityStore, get_perk_store
from cowork_api.services.memberships import MembershipService

from .errors import PerkPersistenceError
from .rules import AVAILABILITY_RULES, PerkContext, PerkRule, first_rejection, remaining_after, time_window
from .usage import UsageMeter


@dataclass
class PerkAvailability:
    perk: MembershipPlanPerk
    is_available: bool
    unavailable_reason: str | None
    next_available_at: datetime | None
    used_today: Decimal
    used_this_week: Decimal
    used_this_month: Decimal
    remaining_today: Decimal | None
    last_used_at: datetime | None
    rejected_by: str | None = None


@dataclass
class PerkStatusReport:
    membership: Membership | None
    perks: list[PerkAvailability] = field(default_factory=list)


async def build_perk_context(
    db: AsyncSession,
    membership: Membership,
    perk: MembershipPlanPerk,
    *,
    now: datetime,
    zone: tzinfo,
) -> PerkContext:
    """Resolve periods, weekday set, time window and usage totals for one perk."""

    periods = usage_periods(now, zone)
    meter = UsageMeter.for_perk_type(perk.perk_type)
    usage = await meter.measure(
        db,
        membership_id=membership.id,
        perk_id=perk.id,
        periods=periods,
    )
    return PerkContext(
        perk=perk,
        membership=membership,
        periods=periods,
        usage=usage,
        meter=meter,
        weekdays=WeekdaySet.parse(perk.days_of_week),
        window=time_window(perk),
    )


def remaining_today(context: PerkContext) -> Decimal | None:
    if context.meter.is_summed:
        return max(context.quantity - context.usage.today, Decimal("0"))
    remaining = remaining_after(context.perk.max_per_day, context.usage.today, Decimal("0"))
    if remaining is None:
        return None
    return max(remaining, Decimal("0"))


class PerkAvailabilityEvaluator:
    """Compute whether each perk of a member's plan can be redeemed now.

    Usage figures are recomputed from the usage log on every call.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        rules: tuple[PerkRule, ...] = AVAILABILITY_RULES,
        timezone_name: str | None = None,
        store: PerkObservabilityStore | None = None,
    ) -> None:
        self._db = db_session
        self._rules = rules
        self._zone = resolve_timezone(timezone_name or settings.perks_timezone)
        self._store = store or get_perk_store()
        self._memberships = MembershipService(db_session)

    async def evaluate_user(self, user_id: UUID, *, now: datetime) -> PerkStatusReport:
        try:
            membership = await self._memberships.find_active_membership(user_id, now=now)
            if membership is None or membership.plan is None:
                logger.debug("No active membership for perk evaluation", user_id=str(user_id))
                return PerkStatusReport(membership=None)

            perks = [
                await self.evaluate_perk(membership, perk, now=now)
                for perk in membership.plan.perks
            ]
        except SQLAlchemyError as exc:
            logger.exception("Perk evaluation query failed", user_id=str(user_id))
            raise PerkPersistenceError("Failed to fetch perks", detail=str(exc)) from exc

        available = sum(1 for item in perks if item.is_available)

        self._store.record_evaluation(available=available, unavailable=len(perks) - available)
        logger.info(
            "Evaluated membership perks",
            user_id=str(user_id),
            membership_id=str(membership.id),
            perks=len(perks),
            available=available,
        )
        return PerkStatusReport(membership=membership, perks=perks)

    async def evaluate_perk(
        self,
        membership: Membership,
        perk: MembershipPlanPerk,
        *,
        now: datetime,
    ) -> PerkAvailability:
        context = await build_perk_context(self._db, membership, perk, now=now, zone=self._zone)
        rejection = first_rejection(self._rules, context)
        return PerkAvailability(
            perk=perk,
            is_available=rejection is None,
            unavailable_reason=rejection.reason if rejection else None,
            next_available_at=rejection.next_available_at if rejection else None,
            used_today=context.usage.today,
            used_this_week=context.usage.this_week,
            used_this_month=context.usage.this_month,
            remaining_today=remaining_today(context),
            last_used_at=context.usage.last_used_at,
            rejected_by=rejection.rule if rejection else None,
        )
