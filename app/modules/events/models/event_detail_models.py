# -*- coding: utf-8 -*-
"""
backend/app/modules/events/models/event_detail_models.py

Tablas de detalle por evento (invitados, RSVPs, check-ins, mensajes,
invitación pública). El CRUD de estas tablas vive fuera de este
subsistema; aquí solo se leen para archivar y se borran en la purga
opcional (purge_event_details).

Autor: Jemputan
Fecha: 2026-02-04
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_str_enum
from app.modules.events.enums import RsvpResponse


class Guest(Base):
    __tablename__ = "guests"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    pax: Mapped[int] = mapped_column(Integer, nullable=False, default=1, doc="Tamaño del grupo.")


class Rsvp(Base):
    __tablename__ = "rsvps"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, index=True
    )
    guest_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("guests.id"), nullable=True
    )
    response: Mapped[RsvpResponse] = mapped_column(
        as_str_enum(RsvpResponse, name="rsvp_response_enum"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AttendanceLog(Base):
    __tablename__ = "attendance_logs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, index=True
    )
    guest_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("guests.id"), nullable=True
    )
    checked_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class GuestMessage(Base):
    __tablename__ = "guest_messages"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, index=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, unique=True
    )
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


__all__ = ["Guest", "Rsvp", "AttendanceLog", "GuestMessage", "Invitation"]
