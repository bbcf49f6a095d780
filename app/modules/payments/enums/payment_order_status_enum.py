# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payment_order_status_enum.py

Enum: payment_order_status_enum

Transiciones:
    pending -> processing -> verified | expired | failed
    pending ---------------> verified | expired | failed

verified, expired y failed son terminales.

Autor: Jemputan
Fecha: 2026-02-05
"""

from enum import StrEnum


class PaymentOrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    VERIFIED = "verified"
    EXPIRED = "expired"
    FAILED = "failed"


# Estados "abiertos": los únicos que el job de expiración y la verificación tocan
OPEN_ORDER_STATUSES = frozenset({PaymentOrderStatus.PENDING, PaymentOrderStatus.PROCESSING})

TERMINAL_ORDER_STATUSES = frozenset({
    PaymentOrderStatus.VERIFIED,
    PaymentOrderStatus.EXPIRED,
    PaymentOrderStatus.FAILED,
})


__all__ = ["PaymentOrderStatus", "OPEN_ORDER_STATUSES", "TERMINAL_ORDER_STATUSES"]
