# -*- coding: utf-8 -*-
"""
backend/app/modules/events/services/archival.py

Archivado de estadísticas finales de un evento.

Flujo (lo invoca el job de ciclo de vida antes de pasar a DISABLED):
1. compute_event_summary(): agrega invitados, pax, RSVPs por respuesta,
   check-ins, mensajes y vistas.
2. archive_event_summary(): escribe el resumen versionado en
   events.archived_summary y agrega un audit EVENT_DISABLED con el
   resumen y data_detached=true.

El resumen es lo único que sobrevive a la purga: purge_event_details()
es una operación aparte, opt-in, y exige que el evento esté DISABLED con
archived_summary ya persistido (es decir, confirmado en una transacción
anterior).

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.modules.events.enums import LifecycleState, RsvpResponse
from app.modules.events.errors import EventNotFound, InvariantViolation
from app.modules.events.models import (
    AttendanceLog,
    Event,
    Guest,
    GuestMessage,
    Invitation,
    Rsvp,
)
from app.modules.events.schemas import ArchivedSummaryV1, RsvpCounts
from app.shared.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

ARCHIVE_REASON = "cooldown_expired"


async def compute_event_summary(
    db: AsyncSession,
    event_id: int,
    archived_at: datetime,
) -> ArchivedSummaryV1:
    """
    Agrega las estadísticas finales de un evento a partir de sus tablas hijas.

    Cada conteo es independiente (no hay JOIN guests x rsvps), de modo que
    un invitado con varios RSVPs no infla total_guests.
    """
    def _count(model):
        return (
            select(func.count())
            .select_from(model)
            .where(model.event_id == event_id)
            .scalar_subquery()
        )

    totals = (
        await db.execute(
            select(
                _count(Guest).label("total_guests"),
                select(func.coalesce(func.sum(Guest.pax), 0))
                .where(Guest.event_id == event_id)
                .scalar_subquery()
                .label("total_pax"),
                _count(AttendanceLog).label("checkins"),
                _count(GuestMessage).label("messages"),
                select(func.coalesce(func.max(Invitation.view_count), 0))
                .where(Invitation.event_id == event_id)
                .scalar_subquery()
                .label("views"),
            )
        )
    ).one()

    rsvp_rows = await db.execute(
        select(Rsvp.response, func.count())
        .where(Rsvp.event_id == event_id)
        .group_by(Rsvp.response)
    )
    by_response = {RsvpResponse(response): count for response, count in rsvp_rows.all()}

    return ArchivedSummaryV1(
        total_guests=totals.total_guests,
        total_pax=int(totals.total_pax),
        rsvp_counts=RsvpCounts(
            yes=by_response.get(RsvpResponse.YES, 0),
            no=by_response.get(RsvpResponse.NO, 0),
            maybe=by_response.get(RsvpResponse.MAYBE, 0),
        ),
        checkins=totals.checkins,
        messages=totals.messages,
        views=int(totals.views),
        archived_at=archived_at,
    )


async def archive_event_summary(
    db: AsyncSession,
    event_id: int,
    now: Optional[datetime] = None,
    reason: str = ARCHIVE_REASON,
) -> ArchivedSummaryV1:
    """
    Persiste el resumen en events.archived_summary y agrega el audit
    EVENT_DISABLED. No hace commit: el job confirma el resumen junto con
    el paso a DISABLED.

    Raises:
        EventNotFound: si el evento no existe
    """
    now = now or now_utc()

    summary = await compute_event_summary(db, event_id, archived_at=now)
    payload = summary.model_dump(mode="json")

    result = await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(archived_summary=payload, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise EventNotFound(event_id)

    AuditLedger(db).append(
        AuditAction.EVENT_DISABLED,
        {
            "reason": reason,
            "summary": payload,
            "data_detached": True,
        },
        event_id=event_id,
        created_at=now,
    )

    logger.info(
        "[archival] event=%s guests=%d pax=%d checkins=%d messages=%d views=%d",
        event_id,
        summary.total_guests,
        summary.total_pax,
        summary.checkins,
        summary.messages,
        summary.views,
    )
    return summary


async def purge_event_details(
    db: AsyncSession,
    event_id: int,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """
    Borra invitados, RSVPs, check-ins y mensajes de un evento archivado.

    Operación opt-in, separada del job. Solo procede si el evento está
    DISABLED y su archived_summary ya existe; la invitación (slug y
    vistas) se conserva. Hace commit al terminar.

    Returns:
        Filas borradas por tabla

    Raises:
        EventNotFound: si el evento no existe
        InvariantViolation: si el evento no está archivado
    """
    now = now or now_utc()

    event = (
        await db.execute(
            select(Event.lifecycle_state, Event.archived_summary).where(Event.id == event_id)
        )
    ).one_or_none()
    if event is None:
        raise EventNotFound(event_id)
    if event.lifecycle_state != LifecycleState.DISABLED or not event.archived_summary:
        raise InvariantViolation(
            event_id, "la purga requiere un evento DISABLED con archived_summary"
        )

    deleted: dict[str, int] = {}
    # Hijas antes que guests (FK)
    for model in (Rsvp, AttendanceLog, GuestMessage, Guest):
        result = await db.execute(delete(model).where(model.event_id == event_id))
        deleted[model.__tablename__] = result.rowcount

    AuditLedger(db).append(
        AuditAction.EVENT_DETAILS_PURGED,
        {"deleted": deleted},
        event_id=event_id,
        created_at=now,
    )
    await db.commit()

    logger.info("[archival] event=%s detalles purgados: %s", event_id, deleted)
    return deleted


__all__ = [
    "ARCHIVE_REASON",
    "compute_event_summary",
    "archive_event_summary",
    "purge_event_details",
]
