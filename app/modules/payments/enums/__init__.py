# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/__init__.py
"""

from .payment_order_status_enum import (
    PaymentOrderStatus,
    OPEN_ORDER_STATUSES,
    TERMINAL_ORDER_STATUSES,
)

__all__ = ["PaymentOrderStatus", "OPEN_ORDER_STATUSES", "TERMINAL_ORDER_STATUSES"]
