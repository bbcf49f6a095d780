# -*- coding: utf-8 -*-
"""
backend/app/modules/events/models/__init__.py

Modelos ORM del módulo de eventos.
"""

from .event_models import Event
from .event_detail_models import (
    Guest,
    Rsvp,
    AttendanceLog,
    GuestMessage,
    Invitation,
)

__all__ = [
    "Event",
    "Guest",
    "Rsvp",
    "AttendanceLog",
    "GuestMessage",
    "Invitation",
]
