"""Membership perk availability, redemption and usage history."""

from .errors import (  # noqa: F401
    PerkNotFoundError,
    PerkPersistenceError,
    PerkRuleViolation,
    PerkServiceError,
    PerkValidationError,
)
from .evaluator import PerkAvailability, PerkAvailabilityEvaluator, PerkStatusReport  # noqa: F401
from .history import PerkUsageHistoryService  # noqa: F401
from .redemption import PerkRedemptionProcessor, PerkRedemptionResult, RedemptionRequest  # noqa: F401
from .rules import AVAILABILITY_RULES, REDEMPTION_GATES, PerkContext, PerkRejection  # noqa: F401
from .usage import UsageAggregation, UsageMeter, UsageTotals  # noqa: F401

__all__ = [
    "AVAILABILITY_RULES",
    "PerkAvailability",
    "PerkAvailabilityEvaluator",
    "PerkContext",
    "PerkNotFoundError",
    "PerkPersistenceError",
    "PerkRedemptionProcessor",
    "PerkRedemptionResult",
    "PerkRejection",
    "PerkRuleViolation",
    "PerkServiceError",
    "PerkStatusReport",
    "PerkUsageHistoryService",
    "PerkValidationError",
    "REDEMPTION_GATES",
    "RedemptionRequest",
    "UsageAggregation",
    "UsageMeter",
    "UsageTotals",
]
