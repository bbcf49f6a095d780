# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/__init__.py
"""

from .payment_order_models import PaymentOrder

__all__ = ["PaymentOrder"]
