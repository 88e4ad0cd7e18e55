from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from cowork_api.app import create_app
from cowork_api.observability.perks import PerkObservabilityStore, get_perk_store


def test_store_counts_outcomes_per_perk_type() -> None:
    store = PerkObservabilityStore()
    store.record_redemption("coffee_vouchers", "redeemed")
    store.record_redemption("coffee_vouchers", "rejected:daily")
    store.record_redemption("meeting_room_hours", "redeemed")
    store.record_evaluation(available=3, unavailable=1)

    snapshot = store.snapshot().as_dict()

    assert snapshot["redemptions"] == {"total": 3, "redeemed": 2, "rejected:daily": 1}
    assert snapshot["by_perk_type"]["coffee_vouchers"] == {"redeemed": 1, "rejected:daily": 1}
    assert snapshot["evaluations"] == {"requests": 1, "perks_available": 3, "perks_unavailable": 1}

    store.reset()
    assert store.snapshot().as_dict() == {"redemptions": {}, "by_perk_type": {}, "evaluations": {}}


@pytest.mark.asyncio
async def test_perk_snapshot_endpoint() -> None:
    app = create_app()
    get_perk_store().record_redemption("guest_passes", "rejected:monthly")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/observability/perks")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["redemptions"]["rejected:monthly"] == 1
    assert body["data"]["by_perk_type"]["guest_passes"] == {"rejected:monthly": 1}
