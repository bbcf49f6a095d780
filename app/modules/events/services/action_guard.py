# -*- coding: utf-8 -*-
"""
backend/app/modules/events/services/action_guard.py

Autorización de acciones del organizador según el estado del evento.
El frontend nunca es fuente de verdad: toda ruta que mute un evento
consulta este guard antes de actuar.

Reglas (en orden):
1. DISABLED bloquea toda acción.
2. Acciones de pago (publish, invite, upload_media, add_guests,
   send_blast, generate_qr) exigen payment_state == PAID.
3. ENDED/COOLING solo permiten view, export y download.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.events.enums import COOLDOWN_STATES, LifecycleState, PaymentState
from app.modules.events.models import Event

ACTIONS_REQUIRE_PAID = frozenset({
    "publish",
    "invite",
    "upload_media",
    "add_guests",
    "send_blast",
    "generate_qr",
})

ACTIONS_ALLOWED_IN_COOLDOWN = frozenset({"view", "export", "download"})


@dataclass(frozen=True)
class ActionCheck:
    allowed: bool
    code: Optional[str] = None
    reason: Optional[str] = None


ALLOWED = ActionCheck(allowed=True)


def evaluate_event_action(
    payment_state: PaymentState,
    lifecycle_state: LifecycleState,
    action: str,
) -> ActionCheck:
    """Decide si `action` está permitida para un evento en este estado."""
    if lifecycle_state == LifecycleState.DISABLED:
        return ActionCheck(False, "EVENT_INACCESSIBLE", "Event is disabled")

    if action in ACTIONS_REQUIRE_PAID and payment_state != PaymentState.PAID:
        return ActionCheck(False, "PAYMENT_REQUIRED", "Payment required for this action")

    if lifecycle_state in COOLDOWN_STATES and action not in ACTIONS_ALLOWED_IN_COOLDOWN:
        return ActionCheck(
            False,
            "COOLING_PERIOD",
            "Event is in cooling period. Only view/export/download allowed.",
        )

    return ALLOWED


async def check_event_action(db: AsyncSession, event_id: int, action: str) -> ActionCheck:
    """Igual que evaluate_event_action, leyendo el estado actual de BD."""
    row = (
        await db.execute(
            select(Event.payment_state, Event.lifecycle_state).where(Event.id == event_id)
        )
    ).one_or_none()
    if row is None:
        return ActionCheck(False, "EVENT_NOT_FOUND", "Event not found")
    return evaluate_event_action(row.payment_state, row.lifecycle_state, action)


__all__ = [
    "ACTIONS_REQUIRE_PAID",
    "ACTIONS_ALLOWED_IN_COOLDOWN",
    "ActionCheck",
    "evaluate_event_action",
    "check_event_action",
]
