# -*- coding: utf-8 -*-
"""
backend/app/modules/events/models/event_models.py

Modelo ORM para la tabla events.

Reglas que este modelo NO hace cumplir por sí mismo (las aplica la API de
transición de estado y los jobs):
- lifecycle_state ∉ {DRAFT} solo con payment_state == PAID.
- cooldown_until se escribe una sola vez (al entrar a ENDED).
- disabled_at se escribe una sola vez (al entrar a DISABLED).
- Un evento nunca se borra desde este subsistema: queda DISABLED.

Autor: Jemputan
Fecha: 2026-02-04
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Index,
    String,
    Time,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, JSONType, as_str_enum
from app.modules.events.enums import LifecycleState, PaymentState


class Event(Base):
    """
    Evento con invitación digital.

    Se crea al iniciar el checkout (DRAFT/PENDING) y avanza por su línea
    de tiempo solo mientras el pago está confirmado.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
        doc="Organizador (created_by).",
    )

    event_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    payment_state: Mapped[PaymentState] = mapped_column(
        as_str_enum(PaymentState, name="payment_state_enum"),
        nullable=False,
        default=PaymentState.NO_PAID,
    )

    lifecycle_state: Mapped[LifecycleState] = mapped_column(
        as_str_enum(LifecycleState, name="lifecycle_state_enum"),
        nullable=False,
        default=LifecycleState.DRAFT,
    )

    # Fecha/hora "de pared" en settings.event_timezone
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True, doc="NULL = 00:00")
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True, doc="NULL = 23:59")

    cooldown_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Fin del evento + cooldown. Se fija una vez al entrar a ENDED.",
    )

    disabled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Momento de paso a DISABLED. Se fija una vez.",
    )

    archived_summary: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=True,
        doc="Resumen versionado (ArchivedSummaryV1) escrito antes de cualquier purga.",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        # Predicados de los barridos del job de ciclo de vida
        Index("ix_events_lifecycle_payment", "lifecycle_state", "payment_state"),
        Index("ix_events_lifecycle_cooldown", "lifecycle_state", "cooldown_until"),
    )

    def __repr__(self) -> str:
        return (
            f"<Event id={self.id} payment={self.payment_state} "
            f"lifecycle={self.lifecycle_state} date={self.event_date}>"
        )


__all__ = ["Event"]
