"""Best-effort activity logging for member actions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import Request
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.models.activity import ActivityAction, ActivityLog


@dataclass(frozen=True, slots=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "ClientInfo":
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip_address = forwarded.split(",")[0].strip()
        else:
            ip_address = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
        return cls(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


class ActivityLogger:
    """Persist activity entries without ever failing the caller."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def log_user_activity(
        self,
        user_id: UUID,
        action: ActivityAction,
        description: str,
        *,
        reference_id: str | None = None,
        reference_type: str | None = None,
        metadata: dict[str, Any] | None = None,
        client: ClientInfo | None = None,
        is_success: bool = True,
        error_message: str | None = None,
    ) -> ActivityLog | None:
        """Insert and commit an entry; on database errors roll back and return ``None``."""

        client = client or ClientInfo()
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            description=description,
            reference_id=reference_id,
            reference_type=reference_type,
            metadata_json=metadata or {},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            is_success=is_success,
            error_message=error_message,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._db.add(entry)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.warning(
                "Failed to record activity log entry",
                user_id=str(user_id),
                action=action.value,
                error=str(exc),
            )
            return None
        return entry

    async def list_user_activity(self, user_id: UUID, *, limit: int = 50) -> list[ActivityLog]:
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())
