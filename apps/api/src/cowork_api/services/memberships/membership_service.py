"""Resolve the membership whose perks apply to a user right now."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cowork_api.domain.perks import ensure_aware
from cowork_api.models.membership import Membership, MembershipPlan, MembershipStatus


class MembershipService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def find_active_membership(
        self,
        user_id: UUID,
        *,
        now: datetime,
        lock: bool = False,
    ) -> Membership | None:
        """Return the user's active membership covering ``now``.

        When several memberships qualify the most recently started one wins.
        ``lock`` takes a row lock on the membership for the rest of the
        transaction so concurrent redemptions for it run one at a time.
        """

        instant = ensure_aware(now).astimezone(timezone.utc)
        stmt = (
            select(Membership)
            .options(selectinload(Membership.plan).selectinload(MembershipPlan.perks))
            .where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE,
                Membership.start_date <= instant,
                or_(Membership.end_date.is_(None), Membership.end_date >= instant),
            )
            .order_by(Membership.start_date.desc(), Membership.created_at.desc())
            .limit(2)
        )
        if lock:
            stmt = stmt.with_for_update(of=Membership)

        result = await self._db.execute(stmt)
        candidates = list(result.scalars().all())
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "Multiple active memberships found; using the most recent",
                user_id=str(user_id),
                membership_id=str(candidates[0].id),
            )
        return candidates[0]
