# -*- coding: utf-8 -*-
"""
backend/app/modules/events/enums/__init__.py

Enums del módulo de eventos.
"""

from .payment_state_enum import PaymentState
from .lifecycle_state_enum import LifecycleState, PAID_ONLY_STATES, COOLDOWN_STATES
from .rsvp_response_enum import RsvpResponse
from .lifecycle_state_transitions import (
    VALID_LIFECYCLE_TRANSITIONS,
    is_valid_lifecycle_transition,
    get_allowed_transitions,
    validate_lifecycle_transition,
)

__all__ = [
    "PaymentState",
    "LifecycleState",
    "PAID_ONLY_STATES",
    "COOLDOWN_STATES",
    "RsvpResponse",
    "VALID_LIFECYCLE_TRANSITIONS",
    "is_valid_lifecycle_transition",
    "get_allowed_transitions",
    "validate_lifecycle_transition",
]
