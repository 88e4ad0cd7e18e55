import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from cowork_api.api.dependencies.clock import get_now  # noqa: E402
from cowork_api.app import create_app  # noqa: E402
from cowork_api.db.base import Base  # noqa: E402
from cowork_api.db.session import get_session  # noqa: E402
from cowork_api.models import (  # noqa: E402
    MeetingRoom,
    Membership,
    MembershipPlan,
    MembershipPlanPerk,
    MembershipPlanType,
    MembershipStatus,
    User,
)
from cowork_api.observability.perks import get_perk_store  # noqa: E402

# Monday 19 October 2026, 10:00 UTC.
FROZEN_NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


@dataclass
class SeededMember:
    user: User
    membership: Membership
    perks: dict[str, MembershipPlanPerk] = field(default_factory=dict)


@pytest.fixture(autouse=True)
def _reset_perk_store():
    get_perk_store().reset()
    yield
    get_perk_store().reset()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_now] = lambda: FROZEN_NOW

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seed_member(session_factory):
    """Create a user with an active membership whose plan carries ``perk_fields``."""

    async def _seed(
        *perk_fields: dict[str, Any],
        status: MembershipStatus = MembershipStatus.ACTIVE,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        user_status: str = "active",
    ) -> SeededMember:
        async with session_factory() as session:
            user = User(
                email=f"member-{uuid4().hex[:10]}@example.com",
                display_name="Ada Member",
                status=user_status,
            )
            plan = MembershipPlan(
                name="Flex Desk",
                plan_type=MembershipPlanType.MONTHLY,
                price=Decimal("199.00"),
            )
            perks = [MembershipPlanPerk(plan=plan, **fields) for fields in perk_fields]
            membership = Membership(
                user=user,
                plan=plan,
                status=status,
                start_date=start_date or FROZEN_NOW - timedelta(days=40),
                end_date=end_date,
            )
            session.add_all([user, plan, membership, *perks])
            await session.commit()
        return SeededMember(user=user, membership=membership, perks={perk.name: perk for perk in perks})

    return _seed


@pytest.fixture
def seed_room(session_factory):
    async def _seed(
        *,
        name: str = "Board Room",
        capacity: int = 8,
        is_active: bool = True,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> MeetingRoom:
        async with session_factory() as session:
            room = MeetingRoom(
                name=name,
                capacity=capacity,
                is_active=is_active,
                start_time=start_time,
                end_time=end_time,
            )
            session.add(room)
            await session.commit()
        return room

    return _seed
