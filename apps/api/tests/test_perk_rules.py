from datetime import datetime, timedelta, timezone
from decimal import Decimal

from cowork_api.domain.perks import WeekdaySet, usage_periods
from cowork_api.models import Membership, MembershipPlanPerk, PerkType
from cowork_api.services.perks.rules import (
    AVAILABILITY_RULES,
    DAILY_CAP,
    MONTHLY_CAP,
    REDEMPTION_GATES,
    WEEKLY_CAP,
    DayOfWeekRule,
    MembershipExpiryRule,
    PerkContext,
    RemainingQuantityRule,
    TimeWindowRule,
    first_rejection,
    format_quantity,
    remaining_after,
    time_window,
)
from cowork_api.services.perks.usage import UsageMeter, UsageTotals

MONDAY_10AM = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def _context(
    *,
    now: datetime = MONDAY_10AM,
    perk_type: PerkType = PerkType.COFFEE_VOUCHERS,
    usage: UsageTotals | None = None,
    end_date: datetime | None = None,
    **perk_fields,
) -> PerkContext:
    perk_fields.setdefault("name", "Coffee")
    perk_fields.setdefault("unit", "uses")
    perk_fields.setdefault("quantity", Decimal("1"))
    perk_fields.setdefault("is_recurring", True)
    perk = MembershipPlanPerk(perk_type=perk_type, **perk_fields)
    membership = Membership(start_date=now - timedelta(days=10), end_date=end_date)
    return PerkContext(
        perk=perk,
        membership=membership,
        periods=usage_periods(now, timezone.utc),
        usage=usage or UsageTotals(),
        meter=UsageMeter.for_perk_type(perk_type),
        weekdays=WeekdaySet.parse(perk.days_of_week),
        window=time_window(perk),
    )


def test_day_of_week_rule_lists_allowed_days_and_next_date() -> None:
    context = _context(days_of_week=WeekdaySet.from_days([3, 5]))

    rejection = DayOfWeekRule().check(context)

    assert rejection is not None
    assert rejection.rule == "day_of_week"
    assert rejection.reason == "This perk is only available on: Wednesday, Friday"
    assert rejection.next_available_at == datetime(2026, 10, 21, tzinfo=timezone.utc)


def test_day_of_week_rule_passes_on_allowed_day() -> None:
    assert DayOfWeekRule().check(_context(days_of_week=WeekdaySet.from_days([1]))) is None
    assert DayOfWeekRule().check(_context(days_of_week=None)) is None


def test_time_window_is_inclusive_at_both_ends() -> None:
    rule = TimeWindowRule()
    assert rule.check(_context(valid_from="10:00", valid_until="12:00")) is None
    assert rule.check(_context(now=MONDAY_10AM.replace(hour=12), valid_from="10:00", valid_until="12:00")) is None

    rejection = rule.check(_context(valid_from="13:00", valid_until="17:00"))
    assert rejection is not None
    assert rejection.reason == "This perk is only available between 13:00 and 17:00"
    assert rejection.next_available_at is None


def test_time_window_ignored_when_a_bound_is_missing() -> None:
    assert TimeWindowRule().check(_context(valid_from="13:00")) is None


def test_time_window_reads_unpadded_stored_bounds() -> None:
    rule = TimeWindowRule()

    rejection = rule.check(_context(valid_from="9:00", valid_until="9:30:00"))

    assert rejection is not None
    assert rejection.reason == "This perk is only available between 09:00 and 09:30"
    assert rule.check(_context(valid_from="9:00", valid_until="17:00")) is None


def test_unreadable_time_window_does_not_block_the_perk() -> None:
    context = _context(valid_from="noon", valid_until="17:00")

    assert context.window is None
    assert first_rejection(AVAILABILITY_RULES, context) is None



def test_daily_cap_points_to_next_midnight() -> None:
    context = _context(max_per_day=2, usage=UsageTotals(today=Decimal("2")))

    rejection = DAILY_CAP.check(context)

    assert rejection is not None
    assert rejection.reason == "Daily limit reached. You can use this perk 2 time(s) per day."
    assert rejection.next_available_at == datetime(2026, 10, 20, tzinfo=timezone.utc)


def test_weekly_cap_points_to_next_sunday() -> None:
    context = _context(max_per_week=3, usage=UsageTotals(this_week=Decimal("3")))

    rejection = WEEKLY_CAP.check(context)

    assert rejection is not None
    assert rejection.next_available_at == datetime(2026, 10, 25, tzinfo=timezone.utc)


def test_monthly_cap_skips_to_first_allowed_weekday_of_next_month() -> None:
    context = _context(
        max_per_month=4,
        days_of_week=WeekdaySet.from_days([1]),
        usage=UsageTotals(this_month=Decimal("4")),
    )

    rejection = MONTHLY_CAP.check(context)

    assert rejection is not None
    assert rejection.reason == "Monthly limit reached. You can use this perk 4 time(s) per month."
    # 1 November 2026 is a Sunday; the first Monday is the 2nd.
    assert rejection.next_available_at == datetime(2026, 11, 2, tzinfo=timezone.utc)


def test_monthly_cap_without_weekday_restriction_reopens_on_the_first() -> None:
    context = _context(max_per_month=1, usage=UsageTotals(this_month=Decimal("1")))
    rejection = MONTHLY_CAP.check(context)
    assert rejection is not None
    assert rejection.next_available_at == datetime(2026, 11, 1, tzinfo=timezone.utc)


def test_zero_or_missing_caps_do_not_limit() -> None:
    context = _context(max_per_day=0, usage=UsageTotals(today=Decimal("9")))
    assert DAILY_CAP.check(context) is None


def test_monthly_rejection_takes_precedence_over_weekly_and_daily() -> None:
    context = _context(
        max_per_day=1,
        max_per_week=1,
        max_per_month=1,
        usage=UsageTotals(today=Decimal("1"), this_week=Decimal("1"), this_month=Decimal("1")),
    )
    assert first_rejection(REDEMPTION_GATES, context).rule == "monthly"

    weekly_and_daily = _context(
        max_per_day=1,
        max_per_week=1,
        max_per_month=10,
        usage=UsageTotals(today=Decimal("1"), this_week=Decimal("1"), this_month=Decimal("1")),
    )
    assert first_rejection(REDEMPTION_GATES, weekly_and_daily).rule == "weekly"


def test_day_rule_outranks_usage_caps() -> None:
    context = _context(
        days_of_week=WeekdaySet.from_days([2]),
        max_per_month=1,
        usage=UsageTotals(this_month=Decimal("1")),
    )
    assert first_rejection(AVAILABILITY_RULES, context).rule == "day_of_week"


def test_hour_caps_mention_unit() -> None:
    context = _context(
        perk_type=PerkType.MEETING_ROOM_HOURS,
        unit="hours",
        quantity=Decimal("4"),
        max_per_week=6,
        usage=UsageTotals(today=Decimal("1"), this_week=Decimal("6.5"), this_month=Decimal("6.5")),
    )
    rejection = WEEKLY_CAP.check(context)
    assert rejection.reason == "Weekly limit reached. You can use up to 6 hours of this perk per week."


def test_remaining_quantity_only_applies_to_hour_perks() -> None:
    rule = RemainingQuantityRule()
    counted = _context(quantity=Decimal("1"), usage=UsageTotals(today=Decimal("5")))
    assert rule.check(counted) is None

    exhausted = _context(
        perk_type=PerkType.MEETING_ROOM_HOURS,
        unit="hours",
        quantity=Decimal("2"),
        usage=UsageTotals(today=Decimal("2")),
    )
    rejection = rule.check(exhausted)
    assert rejection.reason == "No hours remaining today"
    assert rejection.next_available_at == datetime(2026, 10, 20, tzinfo=timezone.utc)

    one_off = _context(
        perk_type=PerkType.MEETING_ROOM_HOURS,
        unit="hours",
        quantity=Decimal("2"),
        is_recurring=False,
        usage=UsageTotals(today=Decimal("2.5")),
    )
    assert rule.check(one_off).reason == "All hours used"


def test_membership_expiry_rule() -> None:
    rule = MembershipExpiryRule()
    assert rule.check(_context(end_date=None)) is None
    assert rule.check(_context(end_date=MONDAY_10AM + timedelta(days=1))) is None

    rejection = rule.check(_context(end_date=MONDAY_10AM - timedelta(minutes=1)))
    assert rejection.reason == "Membership expired"


def test_expiry_is_not_a_redemption_gate() -> None:
    assert all(rule.name != "membership_expired" for rule in REDEMPTION_GATES)
    assert [rule.name for rule in AVAILABILITY_RULES][-2:] == ["remaining_quantity", "membership_expired"]


def test_remaining_after_and_quantity_formatting() -> None:
    assert remaining_after(None, Decimal("3"), Decimal("1")) is None
    assert remaining_after(5, Decimal("3"), Decimal("1")) == Decimal("1")
    assert format_quantity(Decimal("1.00")) == "1"
    assert format_quantity(Decimal("1.50")) == "1.5"
    assert format_quantity(Decimal("10")) == "10"
