"""Members, membership plans and perks, usage log, meeting rooms, activity log.

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


membership_plan_type = sa.Enum(
    "DAILY", "WEEKLY", "MONTHLY", "QUARTERLY", "ANNUAL", name="membership_plan_type"
)
membership_perk_type = sa.Enum(
    "MEETING_ROOM_HOURS",
    "PRINTING_CREDITS",
    "EVENT_DISCOUNT",
    "LOCKER_ACCESS",
    "COFFEE_VOUCHERS",
    "PARKING_SLOTS",
    "GUEST_PASSES",
    "CUSTOM",
    name="membership_perk_type",
)
membership_status = sa.Enum("PENDING", "ACTIVE", "EXPIRED", name="membership_status")
booking_status = sa.Enum(
    "PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", name="meeting_room_booking_status"
)
booking_payment_status = sa.Enum(
    "UNPAID", "PAID", "WAIVED", name="meeting_room_booking_payment_status"
)
activity_action = sa.Enum("PERK_REDEEMED", "MEETING_ROOM_BOOKED", name="activity_action")


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="member"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "membership_plans",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("plan_type", membership_plan_type, nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("duration_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "membership_plan_perks",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "plan_id",
            _uuid(),
            sa.ForeignKey("membership_plans.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("perk_type", membership_perk_type, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False, server_default="1"),
        sa.Column("unit", sa.String(length=32), nullable=False, server_default="uses"),
        sa.Column("max_per_day", sa.Integer(), nullable=True),
        sa.Column("max_per_week", sa.Integer(), nullable=True),
        sa.Column("max_per_month", sa.Integer(), nullable=True),
        sa.Column("days_of_week", sa.Integer(), nullable=True),
        sa.Column("valid_from", sa.String(length=5), nullable=True),
        sa.Column("valid_until", sa.String(length=5), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_membership_plan_perks_plan_id", "membership_plan_perks", ["plan_id"])

    op.create_table(
        "memberships",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plan_id", _uuid(), sa.ForeignKey("membership_plans.id"), nullable=False),
        sa.Column("status", membership_status, nullable=False, server_default="PENDING"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_memberships_user_status", "memberships", ["user_id", "status"])

    op.create_table(
        "membership_perk_usages",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "membership_id",
            _uuid(),
            sa.ForeignKey("memberships.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "perk_id",
            _uuid(),
            sa.ForeignKey("membership_plan_perks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "perk_type",
            postgresql.ENUM(*membership_perk_type.enums, name="membership_perk_type", create_type=False),
            nullable=False,
        ),
        sa.Column("perk_name", sa.String(), nullable=False),
        sa.Column("quantity_used", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit", sa.String(length=32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("used_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index(
        "ix_membership_perk_usages_lookup",
        "membership_perk_usages",
        ["membership_id", "perk_id", "used_at"],
    )
    op.create_index("ix_membership_perk_usages_user_id", "membership_perk_usages", ["user_id"])

    op.create_table(
        "meeting_rooms",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "meeting_room_bookings",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", _uuid(), sa.ForeignKey("meeting_rooms.id"), nullable=False),
        sa.Column(
            "usage_id",
            _uuid(),
            sa.ForeignKey("membership_perk_usages.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("duration", sa.Numeric(5, 2), nullable=False),
        sa.Column("number_of_attendees", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", booking_status, nullable=False, server_default="PENDING"),
        sa.Column("payment_status", booking_payment_status, nullable=False, server_default="UNPAID"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index(
        "ix_meeting_room_bookings_room_date",
        "meeting_room_bookings",
        ["room_id", "booking_date"],
    )
    op.create_index("ix_meeting_room_bookings_user_id", "meeting_room_bookings", ["user_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("action", activity_action, nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("reference_id", sa.String(), nullable=True),
        sa.Column("reference_type", sa.String(length=64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(), nullable=True),
        sa.Column("is_success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_created_at", table_name="activity_logs")
    op.drop_index("ix_activity_logs_user_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_meeting_room_bookings_user_id", table_name="meeting_room_bookings")
    op.drop_index("ix_meeting_room_bookings_room_date", table_name="meeting_room_bookings")
    op.drop_table("meeting_room_bookings")
    op.drop_table("meeting_rooms")
    op.drop_index("ix_membership_perk_usages_user_id", table_name="membership_perk_usages")
    op.drop_index("ix_membership_perk_usages_lookup", table_name="membership_perk_usages")
    op.drop_table("membership_perk_usages")
    op.drop_index("ix_memberships_user_status", table_name="memberships")
    op.drop_table("memberships")
    op.drop_index("ix_membership_plan_perks_plan_id", table_name="membership_plan_perks")
    op.drop_table("membership_plan_perks")
    op.drop_table("membership_plans")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        activity_action,
        booking_payment_status,
        booking_status,
        membership_status,
        membership_perk_type,
        membership_plan_type,
    ):
        enum.drop(bind, checkfirst=True)
