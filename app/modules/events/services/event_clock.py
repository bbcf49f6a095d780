# -*- coding: utf-8 -*-
"""
backend/app/modules/events/services/event_clock.py

Ventana de tiempo de un evento.

event_date/start_time/end_time son hora "de pared" en la zona
settings.event_timezone; aquí se combinan en instantes UTC comparables
con el "now" del job.

- start_time NULL -> 00:00 del día del evento
- end_time   NULL -> 23:59 del día del evento

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.shared.config import settings

DEFAULT_START = time(0, 0)
DEFAULT_END = time(23, 59)


def event_zone() -> ZoneInfo:
    return ZoneInfo(settings.event_timezone)


def _at(event_date: date, wall: time) -> datetime:
    return datetime.combine(event_date, wall, tzinfo=event_zone()).astimezone(timezone.utc)


def event_start(event_date: date, start_time: Optional[time]) -> datetime:
    """Instante UTC de inicio (inclusivo)."""
    return _at(event_date, start_time or DEFAULT_START)


def event_end(event_date: date, end_time: Optional[time]) -> datetime:
    """Instante UTC de fin (exclusivo)."""
    return _at(event_date, end_time or DEFAULT_END)


def local_today(now: datetime) -> date:
    """Fecha de pared correspondiente a `now` en la zona de eventos."""
    return now.astimezone(event_zone()).date()


__all__ = ["event_start", "event_end", "local_today", "event_zone"]
