from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cowork_api.domain.perks import WeekdaySet
from cowork_api.models import MembershipPerkUsage, MembershipStatus, PerkType
from cowork_api.observability.perks import get_perk_store
from cowork_api.services.perks import PerkAvailabilityEvaluator

from conftest import FROZEN_NOW


async def _record_usage(session_factory, seeded, perk_name: str, *, used_at: datetime, quantity: str = "1") -> None:
    perk = seeded.perks[perk_name]
    async with session_factory() as session:
        session.add(
            MembershipPerkUsage(
                membership_id=seeded.membership.id,
                perk_id=perk.id,
                user_id=seeded.user.id,
                perk_type=perk.perk_type,
                perk_name=perk.name,
                quantity_used=Decimal(quantity),
                unit=perk.unit,
                used_at=used_at,
            )
        )
        await session.commit()


@pytest.mark.asyncio
async def test_user_without_membership_gets_empty_report(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {"name": "Coffee", "perk_type": PerkType.COFFEE_VOUCHERS},
        status=MembershipStatus.PENDING,
    )

    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    assert report.membership is None
    assert report.perks == []


@pytest.mark.asyncio
async def test_memberships_outside_their_dates_are_ignored(session_factory, seed_member) -> None:
    future = await seed_member(
        {"name": "Coffee", "perk_type": PerkType.COFFEE_VOUCHERS},
        start_date=FROZEN_NOW + timedelta(days=1),
    )
    lapsed = await seed_member(
        {"name": "Coffee", "perk_type": PerkType.COFFEE_VOUCHERS},
        end_date=FROZEN_NOW - timedelta(days=1),
    )

    async with session_factory() as session:
        evaluator = PerkAvailabilityEvaluator(session)
        assert (await evaluator.evaluate_user(future.user.id, now=FROZEN_NOW)).membership is None
        assert (await evaluator.evaluate_user(lapsed.user.id, now=FROZEN_NOW)).membership is None


@pytest.mark.asyncio
async def test_day_restriction_excluding_today_lists_allowed_days(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {
            "name": "Weekend Parking",
            "perk_type": PerkType.PARKING_SLOTS,
            "days_of_week": WeekdaySet.from_days([6, 0]),
        }
    )

    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    [status] = report.perks
    assert status.is_available is False
    assert status.unavailable_reason == "This perk is only available on: Sunday, Saturday"
    assert status.next_available_at == datetime(2026, 10, 24, tzinfo=timezone.utc)
    assert status.rejected_by == "day_of_week"


@pytest.mark.asyncio
async def test_counted_perk_usage_buckets_and_daily_cap(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {
            "name": "Coffee",
            "perk_type": PerkType.COFFEE_VOUCHERS,
            "max_per_day": 2,
            "max_per_week": 10,
            "max_per_month": 30,
        }
    )
    # Saturday of the previous week, earlier this month, and twice today.
    await _record_usage(session_factory, seeded, "Coffee", used_at=datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc))
    await _record_usage(session_factory, seeded, "Coffee", used_at=datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc))
    await _record_usage(session_factory, seeded, "Coffee", used_at=datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc))
    await _record_usage(session_factory, seeded, "Coffee", used_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))
    # Last month does not count.
    await _record_usage(session_factory, seeded, "Coffee", used_at=datetime(2026, 9, 30, 9, 0, tzinfo=timezone.utc))

    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    [status] = report.perks
    assert status.used_today == Decimal("2")
    assert status.used_this_week == Decimal("3")
    assert status.used_this_month == Decimal("4")
    assert status.remaining_today == Decimal("0")
    assert status.is_available is False
    assert status.unavailable_reason == "Daily limit reached. You can use this perk 2 time(s) per day."
    assert status.next_available_at == datetime(2026, 10, 20, tzinfo=timezone.utc)
    assert status.last_used_at == datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_monthly_cap_wins_over_weekly_and_daily(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {
            "name": "Guest Pass",
            "perk_type": PerkType.GUEST_PASSES,
            "max_per_day": 1,
            "max_per_week": 1,
            "max_per_month": 1,
        }
    )
    await _record_usage(session_factory, seeded, "Guest Pass", used_at=FROZEN_NOW - timedelta(hours=1))

    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    [status] = report.perks
    assert status.rejected_by == "monthly"
    assert status.next_available_at == datetime(2026, 11, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_hour_perk_sums_partial_hours(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {
            "name": "Meeting Room",
            "perk_type": PerkType.MEETING_ROOM_HOURS,
            "quantity": Decimal("2"),
            "unit": "hours",
        }
    )
    await _record_usage(session_factory, seeded, "Meeting Room", used_at=FROZEN_NOW - timedelta(hours=2), quantity="1.5")

    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    [status] = report.perks
    assert status.used_today == Decimal("1.5")
    assert status.remaining_today == Decimal("0.5")
    assert status.is_available is True

    await _record_usage(session_factory, seeded, "Meeting Room", used_at=FROZEN_NOW - timedelta(hours=1), quantity="0.5")
    async with session_factory() as session:
        report = await PerkAvailabilityEvaluator(session).evaluate_user(seeded.user.id, now=FROZEN_NOW)

    [status] = report.perks
    assert status.is_available is False
    assert status.unavailable_reason == "No hours remaining today"
    assert status.remaining_today == Decimal("0")


@pytest.mark.asyncio
async def test_expired_membership_gate_reports_expiry(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {"name": "Locker", "perk_type": PerkType.LOCKER_ACCESS},
        end_date=FROZEN_NOW + timedelta(hours=1),
    )

    async with session_factory() as session:
        evaluator = PerkAvailabilityEvaluator(session)
        report = await evaluator.evaluate_user(seeded.user.id, now=FROZEN_NOW)
        membership = report.membership
        perk = report.perks[0].perk
        # Evaluating an already-loaded membership past its end date.
        later = await evaluator.evaluate_perk(membership, perk, now=FROZEN_NOW + timedelta(hours=2))

    assert report.perks[0].is_available is True
    assert later.is_available is False
    assert later.unavailable_reason == "Membership expired"


@pytest.mark.asyncio
async def test_evaluation_is_read_only_and_repeatable(session_factory, seed_member) -> None:
    seeded = await seed_member(
        {"name": "Coffee", "perk_type": PerkType.COFFEE_VOUCHERS, "max_per_day": 3},
        {"name": "Printing", "perk_type": PerkType.PRINTING_CREDITS, "max_per_week": 5},
    )
    await _record_usage(session_factory, seeded, "Coffee", used_at=FROZEN_NOW - timedelta(minutes=5))

    async with session_factory() as session:
        evaluator = PerkAvailabilityEvaluator(session)
        first = await evaluator.evaluate_user(seeded.user.id, now=FROZEN_NOW)
        second = await evaluator.evaluate_user(seeded.user.id, now=FROZEN_NOW)

    def figures(report):
        return sorted(
            (item.perk.name, item.used_today, item.used_this_week, item.used_this_month, item.is_available)
            for item in report.perks
        )

    assert figures(first) == figures(second)
    snapshot = get_perk_store().snapshot()
    assert snapshot.evaluations["requests"] == 2
    assert snapshot.evaluations["perks_available"] == 4
