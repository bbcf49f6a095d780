# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/jobs/expire_payment_orders_job.py

Job programado (cada 5 min) que expira órdenes de pago vencidas.

Selección: status IN (pending, processing) AND expires_at < now.

Por cada orden, en UNA transacción:
1. status = expired (UPDATE con la misma guarda que la selección)
2. evento -> NO_PAID / DRAFT vía update_payment_state; si el evento ya
   quedó PAID por la verificación, se pierde la carrera y no se toca
3. audit PAYMENT_EXPIRED (order_ref, amount, created_at, expires_at)
4. account_flags del usuario: expired +1, attempts +1
5. umbral de abuso del usuario (flag con el mismo commit que el conteo)

Una orden que falla se registra, se hace rollback y se salta; sigue
siendo elegible en la siguiente ejecución. Un barrido abortado a la mitad
no deja usuarios con el contador arriba del umbral sin marcar. Después del
barrido: reset de la ventana horaria.

Re-ejecutar con el mismo "now" no selecciona filas: las órdenes ya
expiradas no cumplen el WHERE.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Row, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.abuse.services import (
    evaluate_abuse_thresholds,
    record_expired_payment,
    reset_hourly_counters,
)
from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.modules.events.enums import PaymentState
from app.modules.events.errors import (
    EventNotFound,
    InvariantViolation,
    PartialRowError,
    RaceLossError,
    TransientStoreError,
    transient_store_errors,
)
from app.modules.events.services import update_payment_state
from app.modules.payments.enums import OPEN_ORDER_STATUSES, PaymentOrderStatus
from app.modules.payments.models import PaymentOrder
from app.observability.job_metrics import PAYMENT_ORDERS_EXPIRED
from app.shared.config import settings
from app.shared.database import session_scope
from app.shared.scheduler import ScheduledJob, get_scheduler
from app.shared.utils.datetime_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

# ID del job para referencia
EXPIRE_ORDERS_JOB_ID = "payments_expire_orders"

# Pagos que el barrido puede revertir; PAID nunca
_REVERTIBLE_PAYMENT_STATES = frozenset({PaymentState.PENDING, PaymentState.NO_PAID})


@dataclass
class ExpirationRunResult:
    """Conteos de una ejecución del barrido."""
    now: datetime
    expired: int = 0
    events_reverted: int = 0
    raced: int = 0
    skipped: list[str] = field(default_factory=list)
    flagged_users: list[int] = field(default_factory=list)
    hourly_resets: int = 0

    def as_dict(self) -> dict:
        return {
            "now": self.now.isoformat(),
            "expired": self.expired,
            "events_reverted": self.events_reverted,
            "raced": self.raced,
            "skipped": list(self.skipped),
            "flagged_users": list(self.flagged_users),
            "hourly_resets": self.hourly_resets,
        }


async def _expire_one(db: AsyncSession, order: Row, now: datetime, result: ExpirationRunResult) -> bool:
    """
    Expira una orden y sus efectos dependientes. Hace commit.
    `order` es una fila plana (no una instancia ORM): sobrevive a los
    rollback de otras órdenes sin recargarse.

    Returns:
        False si otro camino ya la había terminado (0 filas)
    """
    res = await db.execute(
        update(PaymentOrder)
        .where(
            PaymentOrder.id == order.id,
            PaymentOrder.status.in_(OPEN_ORDER_STATUSES),
            PaymentOrder.expires_at < now,
        )
        .values(status=PaymentOrderStatus.EXPIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        await db.rollback()
        return False

    if order.event_id is not None:
        try:
            change = await update_payment_state(
                db,
                order.event_id,
                PaymentState.NO_PAID,
                expected_from=_REVERTIBLE_PAYMENT_STATES,
                now=now,
                reason="payment_expired",
            )
            if change.changed:
                result.events_reverted += 1
        except RaceLossError as e:
            # La verificación ganó: el evento queda PAID
            result.raced += 1
            logger.info("[payment_expiration] ref=%s: %s", order.order_ref, e)
        except EventNotFound:
            logger.warning(
                "[payment_expiration] ref=%s apunta a evento inexistente %s",
                order.order_ref,
                order.event_id,
            )

    AuditLedger(db).append(
        AuditAction.PAYMENT_EXPIRED,
        {
            "order_ref": order.order_ref,
            "amount": order.amount,
            "created_at": ensure_utc(order.created_at).isoformat() if order.created_at else None,
            "expires_at": ensure_utc(order.expires_at).isoformat(),
        },
        event_id=order.event_id,
        user_id=order.user_id,
        created_at=now,
    )

    await record_expired_payment(db, order.user_id, now)
    flagged = await evaluate_abuse_thresholds(db, [order.user_id], now)
    await db.commit()
    result.flagged_users.extend(flagged)
    return True


async def _post_sweep(db: AsyncSession, now: datetime, result: ExpirationRunResult) -> None:
    async with transient_store_errors("hourly_reset"):
        result.hourly_resets = await reset_hourly_counters(db, now)
        await db.commit()


async def expire_payment_orders(
    now: Optional[datetime] = None,
    session: Optional[AsyncSession] = None,
) -> ExpirationRunResult:
    """
    Expira las órdenes vencidas y evalúa abuso.

    Args:
        now: Instante de referencia (default: ahora UTC)
        session: Sesión async opcional (si no se provee, crea una nueva)

    Returns:
        ExpirationRunResult con los conteos de la ejecución

    Raises:
        TransientStoreError: si el store no responde (el scheduler reintenta)
    """
    now = ensure_utc(now) if now is not None else now_utc()
    result = ExpirationRunResult(now=now)

    async def _run(db: AsyncSession) -> None:
        async with transient_store_errors("select_expired_orders"):
            orders = (
                await db.execute(
                    select(
                        PaymentOrder.id,
                        PaymentOrder.order_ref,
                        PaymentOrder.event_id,
                        PaymentOrder.user_id,
                        PaymentOrder.amount,
                        PaymentOrder.created_at,
                        PaymentOrder.expires_at,
                    )
                    .where(
                        PaymentOrder.status.in_(OPEN_ORDER_STATUSES),
                        PaymentOrder.expires_at < now,
                    )
                    .order_by(PaymentOrder.expires_at, PaymentOrder.id)
                )
            ).all()
            await db.commit()

        for order in orders:
            try:
                async with transient_store_errors("expire_order"):
                    expired = await _expire_one(db, order, now, result)
            except TransientStoreError:
                await db.rollback()
                raise
            except InvariantViolation as e:
                await db.rollback()
                logger.critical("[payment_expiration] ref=%s: %s; orden sin tocar", order.order_ref, e)
                result.skipped.append(order.order_ref)
                continue
            except Exception as e:
                await db.rollback()
                err = PartialRowError(order.order_ref, e)
                logger.error("[payment_expiration] %s", err, exc_info=True)
                result.skipped.append(order.order_ref)
                continue

            if expired:
                result.expired += 1
            else:
                result.raced += 1

        if result.expired:
            PAYMENT_ORDERS_EXPIRED.inc(result.expired)

        await _post_sweep(db, now, result)

    if session is not None:
        await _run(session)
    else:
        async with session_scope() as db:
            await _run(db)

    if result.expired or result.skipped:
        logger.info(
            "[payment_expiration] run now=%s expired=%d reverted=%d raced=%d skipped=%d flagged=%s",
            now.isoformat(),
            result.expired,
            result.events_reverted,
            result.raced,
            len(result.skipped),
            result.flagged_users,
        )
    else:
        logger.debug("[payment_expiration] sin órdenes vencidas (now=%s)", now.isoformat())

    return result


def build_expire_payment_orders_job() -> ScheduledJob:
    return ScheduledJob(
        job_id=EXPIRE_ORDERS_JOB_ID,
        interval=timedelta(minutes=settings.payment_expiration_interval_minutes),
        run=expire_payment_orders,
        description="Expire lapsed payment orders and revert their events to DRAFT",
    )


def register_expire_payment_orders_job() -> str:
    """
    Registra el job de expiración en el scheduler global.

    Returns:
        ID del job registrado
    """
    job = build_expire_payment_orders_job()
    job_id = get_scheduler().add_job(job)

    logger.info(
        "Registered expire payment orders job: id=%s interval=%s window=%d min",
        job_id,
        job.interval,
        settings.payment_window_minutes,
    )
    return job_id


__all__ = [
    "EXPIRE_ORDERS_JOB_ID",
    "ExpirationRunResult",
    "expire_payment_orders",
    "build_expire_payment_orders_job",
    "register_expire_payment_orders_job",
]
