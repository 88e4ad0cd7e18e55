"""User activity log."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum as SqlEnum, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from cowork_api.db.base import Base


class ActivityAction(str, Enum):
    PERK_REDEEMED = "perk_redeemed"
    MEETING_ROOM_BOOKED = "meeting_room_booked"


class ActivityLog(Base):
    """Audit trail entry shown on the member's activity history."""

    __tablename__ = "activity_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    action = Column(SqlEnum(ActivityAction, name="activity_action"), nullable=False)
    description = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)
    reference_type = Column(String(64), nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String, nullable=True)
    is_success = Column(Boolean, nullable=False, default=True, server_default="true")
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
