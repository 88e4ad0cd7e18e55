"""Membership lookups."""

from .membership_service import MembershipService  # noqa: F401

__all__ = ["MembershipService"]
