# -*- coding: utf-8 -*-
"""
backend/app/modules/events/enums/rsvp_response_enum.py

Respuestas posibles a una invitación (tabla rsvps).

Autor: Jemputan
Fecha: 2026-02-04
"""

from enum import StrEnum


class RsvpResponse(StrEnum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


__all__ = ["RsvpResponse"]
