# -*- coding: utf-8 -*-
"""
backend/app/modules/events/services/__init__.py

Servicios del módulo de eventos: API de transición de estado, archivado,
guard de acciones y reloj de eventos.
"""

from .state_transitions import PaymentStateChange, derive_lifecycle, update_payment_state
from .archival import (
    ARCHIVE_REASON,
    compute_event_summary,
    archive_event_summary,
    purge_event_details,
)
from .action_guard import (
    ActionCheck,
    evaluate_event_action,
    check_event_action,
)
from .event_clock import event_start, event_end, local_today

__all__ = [
    "PaymentStateChange",
    "derive_lifecycle",
    "update_payment_state",
    "ARCHIVE_REASON",
    "compute_event_summary",
    "archive_event_summary",
    "purge_event_details",
    "ActionCheck",
    "evaluate_event_action",
    "check_event_action",
    "event_start",
    "event_end",
    "local_today",
]
