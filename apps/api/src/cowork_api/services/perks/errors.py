"""Errors raised by the perk services and rendered by the API layer."""

from __future__ import annotations

from datetime import datetime

from fastapi import status


class PerkServiceError(Exception):
    """Base error carrying a member-facing message and an HTTP status."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class PerkValidationError(PerkServiceError):
    """Request is missing fields or carries invalid values."""


class PerkNotFoundError(PerkServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class PerkRuleViolation(PerkServiceError):
    """A usage rule rejected the redemption."""

    def __init__(self, rule: str, message: str, *, next_available_at: datetime | None = None) -> None:
        super().__init__(message)
        self.rule = rule
        self.next_available_at = next_available_at


class PerkPersistenceError(PerkServiceError):
    """A database read or write behind a perk operation failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail
