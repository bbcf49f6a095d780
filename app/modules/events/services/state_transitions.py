# -*- coding: utf-8 -*-
"""
backend/app/modules/events/services/state_transitions.py

Punto de entrada ÚNICO para mutar payment_state (y el lifecycle_state
derivado) de un evento. Lo usan tanto el job de expiración de pagos como
la verificación síncrona de pagos; ninguno escribe estas columnas por su
cuenta.

Contrato de update_payment_state(event_id, target):
- PAID    : DRAFT -> SCHEDULED en la misma escritura. Si la fecha ya pasó,
            el job de ciclo de vida lo adelanta en su siguiente ejecución.
            En cualquier otro lifecycle, este no cambia.
- PENDING : solo válido en DRAFT (checkout iniciado); lifecycle no cambia.
- NO_PAID : lifecycle vuelve a DRAFT en la MISMA escritura.
            Un evento DISABLED no se revierte (InvariantViolation).
- Idempotente: pedir el estado actual es un no-op (changed=False).
- No hace commit: el llamador decide la transacción (la orden de pago,
  el evento y el audit se confirman juntos).

Concurrencia:
    El UPDATE lleva como guarda el (payment_state, lifecycle_state) leído.
    Si afecta 0 filas, otro camino ganó la carrera -> RaceLossError, que
    los llamadores tratan como éxito.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.modules.events.enums import (
    LifecycleState,
    PaymentState,
    validate_lifecycle_transition,
)
from app.modules.events.errors import (
    EventNotFound,
    InvariantViolation,
    RaceLossError,
)
from app.modules.events.models import Event
from app.shared.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentStateChange:
    """Resultado de update_payment_state."""
    event_id: int
    changed: bool
    old_payment: PaymentState
    new_payment: PaymentState
    old_lifecycle: LifecycleState
    new_lifecycle: LifecycleState


def derive_lifecycle(
    event_id: int,
    target: PaymentState,
    current: LifecycleState,
) -> LifecycleState:
    """
    lifecycle_state resultante de fijar payment_state=target.

    Raises:
        InvariantViolation: si la combinación rompería la regla de pago
    """
    if target == PaymentState.NO_PAID:
        if current == LifecycleState.DISABLED:
            raise InvariantViolation(event_id, "un evento DISABLED no puede revertirse a NO_PAID")
        return LifecycleState.DRAFT

    if target == PaymentState.PENDING:
        if current != LifecycleState.DRAFT:
            raise InvariantViolation(
                event_id, f"PENDING requiere lifecycle DRAFT (actual: {current})"
            )
        return current

    # PAID
    if current == LifecycleState.DRAFT:
        return LifecycleState.SCHEDULED
    return current


async def update_payment_state(
    db: AsyncSession,
    event_id: int,
    target: PaymentState,
    *,
    expected_from: Optional[Iterable[PaymentState]] = None,
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> PaymentStateChange:
    """
    Fija payment_state y deriva lifecycle_state de forma atómica.

    Args:
        db: Sesión async (sin commit)
        event_id: Evento a mutar
        target: payment_state destino
        expected_from: Si se da, el payment_state actual debe estar en este
            conjunto; si no, RaceLossError (p. ej. la expiración nunca
            revierte un evento que ya quedó PAID)
        now: Timestamp de la operación (default: ahora UTC)
        reason: Texto libre para el audit

    Raises:
        EventNotFound: si el evento no existe
        InvariantViolation: si la transición rompería la regla de pago
        RaceLossError: si otro camino cambió el evento primero
    """
    now = now or now_utc()

    row = (
        await db.execute(
            select(Event.payment_state, Event.lifecycle_state, Event.user_id).where(Event.id == event_id)
        )
    ).one_or_none()
    if row is None:
        raise EventNotFound(event_id)

    old_payment, old_lifecycle, user_id = row

    if expected_from is not None:
        allowed = frozenset(expected_from)
        if old_payment not in allowed:
            raise RaceLossError("event", event_id, "/".join(sorted(str(s) for s in allowed)))

    new_lifecycle = derive_lifecycle(event_id, target, old_lifecycle)

    if old_payment == target and old_lifecycle == new_lifecycle:
        return PaymentStateChange(
            event_id=event_id,
            changed=False,
            old_payment=old_payment,
            new_payment=target,
            old_lifecycle=old_lifecycle,
            new_lifecycle=new_lifecycle,
        )

    if new_lifecycle != old_lifecycle:
        try:
            validate_lifecycle_transition(old_lifecycle, new_lifecycle)
        except ValueError as e:
            raise InvariantViolation(event_id, str(e)) from e

    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.payment_state == old_payment,
            Event.lifecycle_state == old_lifecycle,
        )
        .values(
            payment_state=target,
            lifecycle_state=new_lifecycle,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise RaceLossError("event", event_id, f"{old_payment}/{old_lifecycle}")

    details = {
        "old_payment_state": str(old_payment),
        "new_payment_state": str(target),
        "old_lifecycle_state": str(old_lifecycle),
        "new_lifecycle_state": str(new_lifecycle),
    }
    if reason:
        details["reason"] = reason

    AuditLedger(db).append(
        AuditAction.PAYMENT_STATE_CHANGE,
        details,
        event_id=event_id,
        user_id=user_id,
        created_at=now,
    )

    logger.info(
        "[state] event=%s payment %s->%s lifecycle %s->%s",
        event_id, old_payment, target, old_lifecycle, new_lifecycle,
    )

    return PaymentStateChange(
        event_id=event_id,
        changed=True,
        old_payment=old_payment,
        new_payment=target,
        old_lifecycle=old_lifecycle,
        new_lifecycle=new_lifecycle,
    )


__all__ = ["PaymentStateChange", "derive_lifecycle", "update_payment_state"]
