"""Custom column types."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Integer
from sqlalchemy.types import TypeDecorator

from cowork_api.domain.perks.weekdays import WeekdaySet


class WeekdaySetType(TypeDecorator):
    """Persist a ``WeekdaySet`` as its 7-bit integer mask."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> int | None:
        if value is None:
            return None
        return WeekdaySet.parse(value).mask

    def process_result_value(self, value: int | None, dialect) -> WeekdaySet:
        if value is None:
            return WeekdaySet()
        return WeekdaySet(int(value))
