# -*- coding: utf-8 -*-
"""
backend/app/modules/events/jobs/lifecycle_transitions_job.py

Job horario que avanza eventos pagados por su línea de tiempo.

Con UN solo "now" para toda la ejecución, tres fases en orden, cada una
con su propio commit:
  a) SCHEDULED -> LIVE     : PAID y inicio <= now (inclusivo). Lote + 1 audit.
  b) LIVE      -> ENDED    : fin < now (exclusivo). cooldown_until = fin +
                             COOLDOWN_DAYS, escrito una sola vez. Lote + 1 audit.
  c) ENDED/COOLING -> DISABLED : cooldown_until < now. Evento por evento:
                             archivado y paso a DISABLED en una transacción;
                             si falla, rollback, log y se salta (sigue
                             elegible en la siguiente ejecución).

Como b lee después del commit de a, un evento atrasado puede recorrer
SCHEDULED -> LIVE -> ENDED en una misma ejecución.

Idempotencia: cada UPDATE repite el predicado de selección como guarda;
re-ejecutar con el mismo "now" no produce transiciones adicionales y un
solapamiento accidental con otra ejecución es un no-op.

COOLING es aceptado como origen de la fase c, pero este job no lo produce.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.modules.events.enums import COOLDOWN_STATES, LifecycleState, PaymentState
from app.modules.events.errors import (
    InvariantViolation,
    PartialRowError,
    RaceLossError,
    TransientStoreError,
    transient_store_errors,
)
from app.modules.events.models import Event
from app.modules.events.services.archival import archive_event_summary
from app.modules.events.services.event_clock import event_end, event_start, local_today
from app.observability.job_metrics import LIFECYCLE_TRANSITIONS
from app.shared.config import settings
from app.shared.database import session_scope
from app.shared.scheduler import ScheduledJob, get_scheduler
from app.shared.utils.datetime_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

# ID del job para referencia
LIFECYCLE_JOB_ID = "events_lifecycle_transitions"


@dataclass
class LifecycleRunResult:
    """Conteos de una ejecución del job."""
    now: datetime
    went_live: int = 0
    ended: int = 0
    disabled: int = 0
    raced: int = 0
    skipped: list[int] = field(default_factory=list)
    invariant_violations: list[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "now": self.now.isoformat(),
            "went_live": self.went_live,
            "ended": self.ended,
            "disabled": self.disabled,
            "raced": self.raced,
            "skipped": list(self.skipped),
            "invariant_violations": list(self.invariant_violations),
        }


def _batch_audit(db: AsyncSession, transition: str, event_ids: list[int], now: datetime) -> None:
    AuditLedger(db).append(
        AuditAction.LIFECYCLE_BATCH_TRANSITION,
        {
            "transition": transition,
            "count": len(event_ids),
            "event_ids": event_ids,
            "run_at": now.isoformat(),
        },
        created_at=now,
    )


# ---------------------------------------------------------------------------
# Fase a: SCHEDULED -> LIVE
# ---------------------------------------------------------------------------
async def _scheduled_to_live(db: AsyncSession, now: datetime, result: LifecycleRunResult) -> None:
    today = local_today(now)

    async with transient_store_errors("scheduled_to_live"):
        rows = (
            await db.execute(
                select(Event.id, Event.payment_state, Event.event_date, Event.start_time)
                .where(
                    Event.lifecycle_state == LifecycleState.SCHEDULED,
                    Event.event_date <= today,
                )
            )
        ).all()

        due = [r for r in rows if event_start(r.event_date, r.start_time) <= now]

        # SCHEDULED sin PAID no debería existir: no se "arregla" en silencio
        for r in due:
            if r.payment_state != PaymentState.PAID:
                err = InvariantViolation(r.id, f"SCHEDULED con payment_state={r.payment_state}")
                logger.critical("[lifecycle] %s; fila sin tocar", err)
                result.invariant_violations.append(r.id)

        candidate_ids = [r.id for r in due if r.payment_state == PaymentState.PAID]
        if not candidate_ids:
            logger.debug("[lifecycle] scheduled_to_live: sin candidatos")
            return

        moved = (
            await db.execute(
                update(Event)
                .where(
                    Event.id.in_(candidate_ids),
                    Event.payment_state == PaymentState.PAID,
                    Event.lifecycle_state == LifecycleState.SCHEDULED,
                )
                .values(lifecycle_state=LifecycleState.LIVE, updated_at=now)
                .returning(Event.id)
                .execution_options(synchronize_session=False)
            )
        ).scalars().all()

        if moved:
            _batch_audit(db, "SCHEDULED->LIVE", sorted(moved), now)
        await db.commit()

    result.went_live = len(moved)
    result.raced += len(candidate_ids) - len(moved)
    LIFECYCLE_TRANSITIONS.labels("scheduled_to_live").inc(len(moved))
    logger.info("[lifecycle] scheduled_to_live: %d eventos", len(moved))


# ---------------------------------------------------------------------------
# Fase b: LIVE -> ENDED
# ---------------------------------------------------------------------------
async def _live_to_ended(db: AsyncSession, now: datetime, result: LifecycleRunResult) -> None:
    today = local_today(now)
    cooldown = timedelta(days=settings.cooldown_days)

    async with transient_store_errors("live_to_ended"):
        rows = (
            await db.execute(
                select(Event.id, Event.event_date, Event.end_time)
                .where(
                    Event.lifecycle_state == LifecycleState.LIVE,
                    Event.event_date <= today,
                )
            )
        ).all()

        due = []
        for r in rows:
            end = event_end(r.event_date, r.end_time)
            if end < now:
                due.append((r.id, end))

        if not due:
            logger.debug("[lifecycle] live_to_ended: sin candidatos")
            return

        moved: list[int] = []
        for event_id, end in due:
            res = await db.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.lifecycle_state == LifecycleState.LIVE,
                )
                .values(
                    lifecycle_state=LifecycleState.ENDED,
                    # write-once: un cooldown_until existente nunca se recalcula
                    cooldown_until=func.coalesce(Event.cooldown_until, end + cooldown),
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if res.rowcount:
                moved.append(event_id)

        if moved:
            _batch_audit(db, "LIVE->ENDED", moved, now)
        await db.commit()

    result.ended = len(moved)
    result.raced += len(due) - len(moved)
    LIFECYCLE_TRANSITIONS.labels("live_to_ended").inc(len(moved))
    logger.info("[lifecycle] live_to_ended: %d eventos", len(moved))


# ---------------------------------------------------------------------------
# Fase c: ENDED/COOLING -> DISABLED (fila por fila)
# ---------------------------------------------------------------------------
async def _disable_one(db: AsyncSession, event_id: int, now: datetime) -> None:
    """Archiva y deshabilita un evento. Hace commit; rollback si algo falla."""
    await archive_event_summary(db, event_id, now=now)

    res = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.lifecycle_state.in_(COOLDOWN_STATES),
            Event.cooldown_until < now,
        )
        .values(
            lifecycle_state=LifecycleState.DISABLED,
            disabled_at=func.coalesce(Event.disabled_at, now),
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        raise RaceLossError("event", event_id, "ENDED/COOLING")

    await db.commit()


async def _cooldown_to_disabled(db: AsyncSession, now: datetime, result: LifecycleRunResult) -> None:
    async with transient_store_errors("cooldown_to_disabled"):
        event_ids = (
            await db.execute(
                select(Event.id)
                .where(
                    Event.lifecycle_state.in_(COOLDOWN_STATES),
                    Event.cooldown_until.is_not(None),
                    Event.cooldown_until < now,
                )
                .order_by(Event.id)
            )
        ).scalars().all()
        # Cierra la transacción de lectura antes de la primera fila
        await db.commit()

    if not event_ids:
        logger.debug("[lifecycle] cooldown_to_disabled: sin candidatos")
        return

    for event_id in event_ids:
        try:
            async with transient_store_errors("cooldown_to_disabled"):
                await _disable_one(db, event_id, now)
        except TransientStoreError:
            await db.rollback()
            raise
        except RaceLossError as e:
            await db.rollback()
            result.raced += 1
            logger.info("[lifecycle] %s; otro camino ya lo transicionó", e)
            continue
        except Exception as e:
            await db.rollback()
            err = PartialRowError(event_id, e)
            logger.error("[lifecycle] cooldown_to_disabled: %s", err, exc_info=True)
            result.skipped.append(event_id)
            continue

        result.disabled += 1
        LIFECYCLE_TRANSITIONS.labels("cooldown_to_disabled").inc()

    logger.info(
        "[lifecycle] cooldown_to_disabled: %d deshabilitados, %d omitidos",
        result.disabled,
        len(result.skipped),
    )


async def run_lifecycle_transitions(
    now: Optional[datetime] = None,
    session: Optional[AsyncSession] = None,
) -> LifecycleRunResult:
    """
    Ejecuta las tres fases con un único "now".

    Args:
        now: Instante de referencia (default: ahora UTC)
        session: Sesión async opcional (si no se provee, crea una nueva)

    Raises:
        TransientStoreError: si el store no responde (el scheduler reintenta)
    """
    now = ensure_utc(now) if now is not None else now_utc()
    result = LifecycleRunResult(now=now)

    async def _run(db: AsyncSession) -> None:
        await _scheduled_to_live(db, now, result)
        await _live_to_ended(db, now, result)
        await _cooldown_to_disabled(db, now, result)

    if session is not None:
        await _run(session)
    else:
        async with session_scope() as db:
            await _run(db)

    logger.info(
        "[lifecycle] run now=%s live=%d ended=%d disabled=%d skipped=%d raced=%d",
        now.isoformat(),
        result.went_live,
        result.ended,
        result.disabled,
        len(result.skipped),
        result.raced,
    )
    return result


def build_lifecycle_transitions_job() -> ScheduledJob:
    return ScheduledJob(
        job_id=LIFECYCLE_JOB_ID,
        interval=timedelta(minutes=settings.lifecycle_interval_minutes),
        run=run_lifecycle_transitions,
        description="Advance paid events through their lifecycle",
    )


def register_lifecycle_transitions_job() -> str:
    """
    Registra el job de ciclo de vida en el scheduler global.

    Returns:
        ID del job registrado
    """
    job = build_lifecycle_transitions_job()
    job_id = get_scheduler().add_job(job)

    logger.info(
        "Registered lifecycle transitions job: id=%s interval=%s cooldown_days=%d",
        job_id,
        job.interval,
        settings.cooldown_days,
    )
    return job_id


__all__ = [
    "LIFECYCLE_JOB_ID",
    "LifecycleRunResult",
    "run_lifecycle_transitions",
    "build_lifecycle_transitions_job",
    "register_lifecycle_transitions_job",
]
