# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/__init__.py

Servicios de órdenes de pago (checkout, verificación, rechazo).
"""

from .payment_order_service import (
    generate_order_ref,
    VerificationResult,
    create_payment_order,
    mark_payment_processing,
    verify_payment_order,
    fail_payment_order,
)

__all__ = [
    "generate_order_ref",
    "VerificationResult",
    "create_payment_order",
    "mark_payment_processing",
    "verify_payment_order",
    "fail_payment_order",
]
