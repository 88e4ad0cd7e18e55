"""Seven-day weekday set stored as a bitmask.

Bit 0 is Sunday and bit 6 is Saturday, matching the order members see on the
calendar. An empty set and a full set both mean the perk is not restricted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Iterator

WEEKDAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_FULL_MASK = (1 << 7) - 1
_NAME_LOOKUP = {name.lower(): index for index, name in enumerate(WEEKDAY_NAMES)}
_NAME_LOOKUP.update({name[:3].lower(): index for index, name in enumerate(WEEKDAY_NAMES)})


def sunday_index(day: date) -> int:
    """Weekday number with Sunday as 0."""

    return (day.weekday() + 1) % 7


def _coerce_day(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday out of range 0-6: {value}")
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token.isdigit():
            return _coerce_day(int(token))
        if token in _NAME_LOOKUP:
            return _NAME_LOOKUP[token]
    raise ValueError(f"Invalid weekday: {value!r}")


@dataclass(frozen=True, slots=True)
class WeekdaySet:
    mask: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.mask <= _FULL_MASK:
            raise ValueError(f"Weekday mask out of range: {self.mask}")

    @classmethod
    def from_days(cls, days: Iterable[Any]) -> "WeekdaySet":
        mask = 0
        for day in days:
            mask |= 1 << _coerce_day(day)
        return cls(mask)

    @classmethod
    def parse(cls, value: Any) -> "WeekdaySet":
        """Parse API or legacy storage input into a weekday set.

        Accepts ``None``, another ``WeekdaySet``, an iterable of weekday numbers
        or names, or a JSON array string such as ``"[1, 3]"`` or
        ``'["MONDAY", "WEDNESDAY"]'``.
        """

        if value is None:
            return cls()
        if isinstance(value, WeekdaySet):
            return value
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return cls()
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Weekday set is not valid JSON: {value!r}") from exc
            if not isinstance(decoded, list):
                raise ValueError("Weekday set must be a JSON array")
            return cls.from_days(decoded)
        if isinstance(value, (list, tuple, set, frozenset)):
            return cls.from_days(value)
        raise ValueError(f"Unsupported weekday set value: {value!r}")

    @property
    def is_unrestricted(self) -> bool:
        return self.mask in (0, _FULL_MASK)

    def __contains__(self, weekday: object) -> bool:
        if not isinstance(weekday, int) or not 0 <= weekday <= 6:
            return False
        return bool(self.mask & (1 << weekday))

    def __iter__(self) -> Iterator[int]:
        return (day for day in range(7) if self.mask & (1 << day))

    def __len__(self) -> int:
        return bin(self.mask).count("1")

    def days(self) -> list[int]:
        return list(self)

    def names(self) -> list[str]:
        return [WEEKDAY_NAMES[day] for day in self]

    def allows(self, day: date) -> bool:
        return self.is_unrestricted or sunday_index(day) in self

    def next_allowed(self, start: date, *, inclusive: bool = False) -> date | None:
        """First allowed date on or after ``start`` (after, unless inclusive)."""

        first_offset = 0 if inclusive else 1
        for offset in range(first_offset, first_offset + 7):
            candidate = start + timedelta(days=offset)
            if self.allows(candidate):
                return candidate
        return None
