from __future__ import annotations

from datetime import datetime, timezone


def get_now() -> datetime:
    """Current UTC instant; overridden in tests to pin the clock."""

    return datetime.now(timezone.utc)
