from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.api.dependencies.session import require_member_session
from cowork_api.core.settings import settings
from cowork_api.db.session import get_session
from cowork_api.domain.perks import ensure_aware
from cowork_api.models.user import User
from cowork_api.schemas.activity import ActivityLogData, ActivityLogEntry
from cowork_api.schemas.envelope import ApiEnvelope
from cowork_api.services.activity import ActivityLogger


router = APIRouter(prefix="/user/activity-logs", tags=["Activity"])


@router.get("", response_model=ApiEnvelope[ActivityLogData], summary="Member activity history")
async def list_activity_logs(
    limit: Optional[int] = Query(None, ge=1, le=200),
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> ApiEnvelope[ActivityLogData]:
    entries = await ActivityLogger(db).list_user_activity(
        user.id,
        limit=limit or settings.perk_usage_history_limit,
    )
    return ApiEnvelope(
        data=ActivityLogData(
            logs=[
                ActivityLogEntry(
                    id=entry.id,
                    action=entry.action.value,
                    description=entry.description,
                    referenceId=entry.reference_id,
                    referenceType=entry.reference_type,
                    metadata=entry.metadata_json or {},
                    isSuccess=bool(entry.is_success),
                    errorMessage=entry.error_message,
                    createdAt=ensure_aware(entry.created_at) if entry.created_at else None,
                )
                for entry in entries
            ]
        )
    )
