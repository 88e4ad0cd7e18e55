from fastapi import APIRouter

from .endpoints import (
    activity,
    health,
    meeting_rooms,
    observability,
    perks,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(perks.router)
router.include_router(meeting_rooms.router)
router.include_router(activity.router)
router.include_router(observability.router)
