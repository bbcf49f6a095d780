# -*- coding: utf-8 -*-
"""
backend/app/modules/abuse/services/__init__.py
"""

from .abuse_service import (
    record_expired_payment,
    record_payment_attempt,
    record_checkout_activity,
    should_flag,
    evaluate_abuse_thresholds,
    reset_hourly_counters,
    CreationCheck,
    check_user_can_create_event,
)

__all__ = [
    "record_expired_payment",
    "record_payment_attempt",
    "record_checkout_activity",
    "should_flag",
    "evaluate_abuse_thresholds",
    "reset_hourly_counters",
    "CreationCheck",
    "check_user_can_create_event",
]
