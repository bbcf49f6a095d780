# -*- coding: utf-8 -*-
"""
backend/app/modules/events/routes/event_state_routes.py

Lectura del estado de un evento para dashboards y reportes.

GET /events/{event_id}/state
GET /events/{event_id}/actions/{action}

Autor: Jemputan
Fecha: 2026-02-06
"""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database import get_async_session
from app.modules.events.models import Event
from app.modules.events.schemas import EventStateRead
from app.modules.events.services import check_event_action

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/{event_id}/state", response_model=EventStateRead)
async def get_event_state(
    event_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_async_session),
) -> EventStateRead:
    event = await db.get(Event, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Evento no encontrado: {event_id}",
        )
    return EventStateRead.model_validate(event)


@router.get("/{event_id}/actions/{action}")
async def get_event_action_permission(
    event_id: int = Path(..., ge=1),
    action: str = Path(..., min_length=1, max_length=32),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    """Indica si `action` está permitida para el evento en su estado actual."""
    check = await check_event_action(db, event_id, action)
    if check.code == "EVENT_NOT_FOUND":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Evento no encontrado: {event_id}",
        )
    return {
        "event_id": event_id,
        "action": action,
        "allowed": check.allowed,
        "code": check.code,
        "reason": check.reason,
    }
