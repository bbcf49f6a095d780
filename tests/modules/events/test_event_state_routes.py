# -*- coding: utf-8 -*-
"""
Tests HTTP de /api/events/{id}/state y /api/events/{id}/actions/{action}.
"""

import pytest

from app.modules.events.enums import LifecycleState
from app.modules.events.jobs import run_lifecycle_transitions

from tests.conftest import utc


@pytest.mark.asyncio
async def test_get_state_of_scheduled_event(async_client, make_event):
    event = await make_event()

    response = await async_client.get(f"/api/events/{event.id}/state")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == event.id
    assert body["payment_state"] == "PAID"
    assert body["lifecycle_state"] == "SCHEDULED"
    assert body["archived_summary"] is None


@pytest.mark.asyncio
async def test_get_state_includes_archived_summary(async_client, db, make_event, populate_event):
    event = await make_event(lifecycle_state=LifecycleState.ENDED, cooldown_until=utc(2025, 1, 15))
    await populate_event(event.id)
    await run_lifecycle_transitions(now=utc(2025, 1, 16), session=db)

    response = await async_client.get(f"/api/events/{event.id}/state")

    assert response.status_code == 200
    body = response.json()
    assert body["lifecycle_state"] == "DISABLED"
    assert body["archived_summary"]["total_guests"] == 3
    assert body["archived_summary"]["rsvp_counts"] == {"yes": 2, "no": 1, "maybe": 1}


@pytest.mark.asyncio
async def test_get_state_unknown_event_is_404(async_client):
    response = await async_client.get("/api/events/999/state")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_action_permission_endpoint(async_client, make_event):
    event = await make_event(lifecycle_state=LifecycleState.ENDED)

    allowed = await async_client.get(f"/api/events/{event.id}/actions/export")
    blocked = await async_client.get(f"/api/events/{event.id}/actions/invite")

    assert allowed.json()["allowed"] is True
    assert blocked.json() == {
        "event_id": event.id,
        "action": "invite",
        "allowed": False,
        "code": "COOLING_PERIOD",
        "reason": "Event is in cooling period. Only view/export/download allowed.",
    }


@pytest.mark.asyncio
async def test_action_permission_unknown_event_is_404(async_client):
    response = await async_client.get("/api/events/999/actions/view")

    assert response.status_code == 404
