# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/routes/__init__.py
"""

from .audit_routes import router

__all__ = ["router"]
