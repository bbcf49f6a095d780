# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/payment_order_service.py

Ciclo de vida de una PaymentOrder fuera del job de expiración:

- create_payment_order()    : checkout iniciado (pending, ventana de 15 min)
- mark_payment_processing() : la pasarela aceptó el intento (pending -> processing)
- verify_payment_order()    : pago confirmado (camino síncrono de éxito)
- fail_payment_order()      : la pasarela rechazó el pago

La verificación compite con el job de expiración sobre las mismas filas.
La seguridad descansa en guardas, no en locks:
- verify es no-op si la orden ya está verified;
- el UPDATE de verify exige status IN (pending, processing), igual que el
  del job; quien llegue segundo afecta 0 filas y lo detecta.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.abuse.services import record_checkout_activity, record_payment_attempt
from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.modules.events.enums import PaymentState
from app.modules.events.errors import (
    InvariantViolation,
    PaymentOrderNotFound,
    RaceLossError,
)
from app.modules.events.services import PaymentStateChange, update_payment_state
from app.modules.payments.enums import (
    OPEN_ORDER_STATUSES,
    TERMINAL_ORDER_STATUSES,
    PaymentOrderStatus,
)
from app.modules.payments.models import PaymentOrder
from app.shared.config import settings
from app.shared.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

# Sin 0/O/1/I para referencias dictadas por teléfono
_REF_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_order_ref(now: datetime) -> str:
    """ORD-YYYYMMDD-XXXXXXXX"""
    random_part = "".join(secrets.choice(_REF_ALPHABET) for _ in range(8))
    return f"ORD-{now:%Y%m%d}-{random_part}"


@dataclass(frozen=True)
class VerificationResult:
    order_ref: str
    status: PaymentOrderStatus
    already_verified: bool
    state_change: Optional[PaymentStateChange] = None


async def _get_order(db: AsyncSession, order_ref: str) -> PaymentOrder:
    order = (
        await db.execute(
            select(PaymentOrder)
            .where(PaymentOrder.order_ref == order_ref)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if order is None:
        raise PaymentOrderNotFound(order_ref)
    return order


async def create_payment_order(
    db: AsyncSession,
    user_id: int,
    event_id: Optional[int],
    amount: int,
    now: Optional[datetime] = None,
) -> PaymentOrder:
    """
    Inicia un checkout: crea la orden (pending, expires_at = now + ventana),
    pasa el evento a PENDING (sigue en DRAFT) y cuenta la actividad del
    usuario en su ventana horaria. Hace commit.

    Raises:
        EventNotFound: si event_id no existe
        InvariantViolation: si el evento ya salió de DRAFT
    """
    now = now or now_utc()

    if event_id is not None:
        await update_payment_state(
            db, event_id, PaymentState.PENDING, now=now, reason="checkout_started"
        )

    order = PaymentOrder(
        event_id=event_id,
        user_id=user_id,
        order_ref=generate_order_ref(now),
        status=PaymentOrderStatus.PENDING,
        amount=amount,
        expires_at=now + timedelta(minutes=settings.payment_window_minutes),
        created_at=now,
    )
    db.add(order)

    await record_checkout_activity(db, user_id, now)
    await db.commit()

    logger.info(
        "[payments] orden creada ref=%s event=%s user=%s expires_at=%s",
        order.order_ref,
        event_id,
        user_id,
        order.expires_at.isoformat(),
    )
    return order


async def mark_payment_processing(
    db: AsyncSession,
    order_ref: str,
    now: Optional[datetime] = None,
) -> bool:
    """
    pending -> processing. No-op si ya estaba processing.

    Returns:
        True si la orden quedó en processing

    Raises:
        PaymentOrderNotFound
        RaceLossError: si la orden ya es terminal
    """
    now = now or now_utc()
    res = await db.execute(
        update(PaymentOrder)
        .where(
            PaymentOrder.order_ref == order_ref,
            PaymentOrder.status == PaymentOrderStatus.PENDING,
        )
        .values(status=PaymentOrderStatus.PROCESSING, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount:
        await db.commit()
        return True

    order = await _get_order(db, order_ref)
    if order.status == PaymentOrderStatus.PROCESSING:
        return True
    raise RaceLossError("payment_order", order_ref, "pending")


async def verify_payment_order(
    db: AsyncSession,
    order_ref: str,
    now: Optional[datetime] = None,
) -> VerificationResult:
    """
    Confirma una orden y marca su evento PAID. Hace commit.

    - verified            -> no-op (already_verified=True)
    - expired / failed    -> InvariantViolation (terminal, el pago llegó tarde)
    - pending / processing -> verified; evento PAID (DRAFT -> SCHEDULED);
                             attempts +1; audit PAYMENT_VERIFIED

    Raises:
        PaymentOrderNotFound
        InvariantViolation
    """
    now = now or now_utc()
    order = await _get_order(db, order_ref)

    if order.status == PaymentOrderStatus.VERIFIED:
        logger.info("[payments] ref=%s ya verificada; no-op", order_ref)
        return VerificationResult(order_ref, order.status, already_verified=True)

    if order.status in TERMINAL_ORDER_STATUSES:
        raise InvariantViolation(order_ref, f"orden terminal ({order.status}); no puede verificarse")

    res = await db.execute(
        update(PaymentOrder)
        .where(
            PaymentOrder.id == order.id,
            PaymentOrder.status.in_(OPEN_ORDER_STATUSES),
        )
        .values(status=PaymentOrderStatus.VERIFIED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        # Otro camino ganó entre la lectura y el UPDATE
        await db.rollback()
        order = await _get_order(db, order_ref)
        if order.status == PaymentOrderStatus.VERIFIED:
            return VerificationResult(order_ref, order.status, already_verified=True)
        raise InvariantViolation(order_ref, f"orden pasó a {order.status} durante la verificación")

    state_change = None
    if order.event_id is not None:
        state_change = await update_payment_state(
            db, order.event_id, PaymentState.PAID, now=now, reason="payment_verified"
        )

    await record_payment_attempt(db, order.user_id, now)

    AuditLedger(db).append(
        AuditAction.PAYMENT_VERIFIED,
        {"order_ref": order_ref, "amount": order.amount},
        event_id=order.event_id,
        user_id=order.user_id,
        created_at=now,
    )
    await db.commit()

    logger.info("[payments] ref=%s verificada event=%s", order_ref, order.event_id)
    return VerificationResult(
        order_ref,
        PaymentOrderStatus.VERIFIED,
        already_verified=False,
        state_change=state_change,
    )


async def fail_payment_order(
    db: AsyncSession,
    order_ref: str,
    reason: str = "gateway_rejected",
    now: Optional[datetime] = None,
) -> bool:
    """
    Marca la orden failed y devuelve el evento a NO_PAID/DRAFT, salvo que
    el evento ya esté PAID por otra orden. Hace commit.

    Returns:
        True si esta llamada la marcó failed; False si ya era terminal
    """
    now = now or now_utc()
    order = await _get_order(db, order_ref)

    res = await db.execute(
        update(PaymentOrder)
        .where(
            PaymentOrder.id == order.id,
            PaymentOrder.status.in_(OPEN_ORDER_STATUSES),
        )
        .values(status=PaymentOrderStatus.FAILED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        logger.info("[payments] ref=%s ya era terminal (%s); fail ignorado", order_ref, order.status)
        return False

    if order.event_id is not None:
        try:
            await update_payment_state(
                db,
                order.event_id,
                PaymentState.NO_PAID,
                expected_from={PaymentState.PENDING, PaymentState.NO_PAID},
                now=now,
                reason="payment_failed",
            )
        except RaceLossError as e:
            logger.info("[payments] ref=%s: %s; evento sin cambios", order_ref, e)

    AuditLedger(db).append(
        AuditAction.PAYMENT_FAILED,
        {"order_ref": order_ref, "amount": order.amount, "reason": reason},
        event_id=order.event_id,
        user_id=order.user_id,
        created_at=now,
    )
    await db.commit()
    return True


__all__ = [
    "generate_order_ref",
    "VerificationResult",
    "create_payment_order",
    "mark_payment_processing",
    "verify_payment_order",
    "fail_payment_order",
]
