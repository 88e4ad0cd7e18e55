"""Perk domain value types shared by models and services."""

from .clock import (  # noqa: F401
    UsagePeriods,
    ensure_aware,
    format_clock,
    localize,
    minutes_between,
    parse_clock,
    parse_stored_clock,
    resolve_timezone,
    usage_periods,
)
from .weekdays import WEEKDAY_NAMES, WeekdaySet, sunday_index  # noqa: F401
