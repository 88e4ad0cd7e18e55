from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cowork_api.models.membership import Membership, MembershipPerkUsage
from cowork_api.services.memberships import MembershipService


class PerkUsageHistoryService:
    """Read the usage log of a member's active membership, newest first."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._memberships = MembershipService(db_session)

    async def list_usage(
        self,
        user_id: UUID,
        *,
        now: datetime,
        limit: int = 50,
    ) -> tuple[Membership | None, list[MembershipPerkUsage]]:
        membership = await self._memberships.find_active_membership(user_id, now=now)
        if membership is None:
            return None, []
        stmt = (
            select(MembershipPerkUsage)
            .where(MembershipPerkUsage.membership_id == membership.id)
            .order_by(MembershipPerkUsage.used_at.desc(), MembershipPerkUsage.id.desc())
            .limit(limit)
        )
        result = await self._db.execute(stmt)
        return membership, list(result.scalars().all())
