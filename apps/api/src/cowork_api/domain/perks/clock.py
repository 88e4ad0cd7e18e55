"""Wall-clock helpers for perk rules: HH:MM parsing and usage periods."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_clock(value: str) -> time:
    """Parse a zero-padded ``HH:MM`` string."""

    if not isinstance(value, str):
        raise ValueError(f"Time of day must be a string, got {type(value).__name__}")
    match = _CLOCK_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Time of day must use HH:MM format: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


_STORED_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def parse_stored_clock(value: str) -> time:
    """Parse a time-of-day column, tolerating ``H:MM`` and trailing seconds.

    Member input goes through the strict ``parse_clock``; stored rows may
    predate that check.
    """

    if not isinstance(value, str):
        raise ValueError(f"Time of day must be a string, got {type(value).__name__}")
    match = _STORED_CLOCK_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Unrecognised time of day: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Time of day out of range: {value!r}")
    return time(hour, minute)


def format_clock(value: time | datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


@lru_cache(maxsize=32)
def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def localize(value: datetime, zone: tzinfo) -> datetime:
    return ensure_aware(value).astimezone(zone)


def _midnight(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


@dataclass(frozen=True, slots=True)
class UsagePeriods:
    """Half-open local windows ``[start, end)`` around an evaluation instant.

    Weeks start on Sunday.
    """

    now: datetime
    day_start: datetime
    day_end: datetime
    week_start: datetime
    week_end: datetime
    month_start: datetime
    month_end: datetime

    @property
    def today(self) -> date:
        return self.day_start.date()

    def utc(self, value: datetime) -> datetime:
        return value.astimezone(timezone.utc)


def usage_periods(now: datetime, zone: tzinfo) -> UsagePeriods:
    local_now = localize(now, zone)
    today = local_now.date()
    days_since_sunday = (today.weekday() + 1) % 7
    week_start = today - timedelta(days=days_since_sunday)
    month_start = today.replace(day=1)
    return UsagePeriods(
        now=local_now,
        day_start=_midnight(today, zone),
        day_end=_midnight(today + timedelta(days=1), zone),
        week_start=_midnight(week_start, zone),
        week_end=_midnight(week_start + timedelta(days=7), zone),
        month_start=_midnight(month_start, zone),
        month_end=_midnight(_first_of_next_month(today), zone),
    )
