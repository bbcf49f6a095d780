# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/jobs/__init__.py

Jobs programados del módulo de pagos.
"""

from .expire_payment_orders_job import (
    EXPIRE_ORDERS_JOB_ID,
    ExpirationRunResult,
    expire_payment_orders,
    build_expire_payment_orders_job,
    register_expire_payment_orders_job,
)

__all__ = [
    "EXPIRE_ORDERS_JOB_ID",
    "ExpirationRunResult",
    "expire_payment_orders",
    "build_expire_payment_orders_job",
    "register_expire_payment_orders_job",
]
