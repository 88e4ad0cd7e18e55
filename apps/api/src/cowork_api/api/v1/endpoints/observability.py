"""Observability endpoints for perk evaluation and redemption counters."""

from __future__ import annotations

from fastapi import APIRouter

from cowork_api.observability.perks import get_perk_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get("/perks", summary="Perk redemption observability snapshot")
async def get_perk_snapshot() -> dict[str, object]:
    """Aggregated redemption outcomes and evaluation counts since process start."""
    store = get_perk_store()
    return {"success": True, "data": store.snapshot().as_dict()}
