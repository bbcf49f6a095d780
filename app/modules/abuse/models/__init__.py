# -*- coding: utf-8 -*-
"""
backend/app/modules/abuse/models/__init__.py
"""

from .account_flag_models import AccountFlag

__all__ = ["AccountFlag"]
