"""Membership plans, plan perks, memberships and the perk usage log."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cowork_api.db.base import Base
from cowork_api.models.types import WeekdaySetType


class MembershipPlanType(str, Enum):
    """Billing cadence of a membership plan."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class PerkType(str, Enum):
    """Closed set of perk kinds a plan can grant."""

    MEETING_ROOM_HOURS = "meeting_room_hours"
    PRINTING_CREDITS = "printing_credits"
    EVENT_DISCOUNT = "event_discount"
    LOCKER_ACCESS = "locker_access"
    COFFEE_VOUCHERS = "coffee_vouchers"
    PARKING_SLOTS = "parking_slots"
    GUEST_PASSES = "guest_passes"
    CUSTOM = "custom"


class MembershipStatus(str, Enum):
    """Lifecycle statuses for a member's subscription."""

    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"


class MembershipPlan(Base):
    """Sellable membership product."""

    __tablename__ = "membership_plans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    plan_type = Column(
        SqlEnum(MembershipPlanType, name="membership_plan_type"),
        nullable=False,
        default=MembershipPlanType.MONTHLY,
    )
    price = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    duration_days = Column(Integer, nullable=False, default=30, server_default="30")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    perks = relationship(
        "MembershipPlanPerk",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="MembershipPlanPerk.created_at",
    )
    memberships = relationship("Membership", back_populates="plan")


class MembershipPlanPerk(Base):
    """Perk definition attached to a plan, with its usage rules."""

    __tablename__ = "membership_plan_perks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    plan_id = Column(
        UUID(as_uuid=True),
        ForeignKey("membership_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    perk_type = Column(SqlEnum(PerkType, name="membership_perk_type"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(10, 2), nullable=False, default=1, server_default="1")
    unit = Column(String(32), nullable=False, default="uses", server_default="uses")
    max_per_day = Column(Integer, nullable=True)
    max_per_week = Column(Integer, nullable=True)
    max_per_month = Column(Integer, nullable=True)
    days_of_week = Column(WeekdaySetType(), nullable=True)
    valid_from = Column(String(5), nullable=True)
    valid_until = Column(String(5), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    plan = relationship("MembershipPlan", back_populates="perks")


class Membership(Base):
    """A user's subscription to a plan."""

    __tablename__ = "memberships"
    __table_args__ = (
        Index("ix_memberships_user_status", "user_id", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    plan_id = Column(UUID(as_uuid=True), ForeignKey("membership_plans.id"), nullable=False)
    status = Column(
        SqlEnum(MembershipStatus, name="membership_status"),
        nullable=False,
        default=MembershipStatus.PENDING,
        server_default=MembershipStatus.PENDING.name,
    )
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="memberships")
    plan = relationship("MembershipPlan", back_populates="memberships")
    perk_usages = relationship("MembershipPerkUsage", back_populates="membership")


class MembershipPerkUsage(Base):
    """Append-only record of a perk redemption.

    Quota figures are always recomputed from these rows.
    """

    __tablename__ = "membership_perk_usages"
    __table_args__ = (
        Index("ix_membership_perk_usages_lookup", "membership_id", "perk_id", "used_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    membership_id = Column(
        UUID(as_uuid=True),
        ForeignKey("memberships.id", ondelete="CASCADE"),
        nullable=False,
    )
    perk_id = Column(
        UUID(as_uuid=True),
        ForeignKey("membership_plan_perks.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    perk_type = Column(SqlEnum(PerkType, name="membership_perk_type"), nullable=False)
    perk_name = Column(String, nullable=False)
    quantity_used = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)
    used_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    membership = relationship("Membership", back_populates="perk_usages")
    perk = relationship("MembershipPlanPerk")
