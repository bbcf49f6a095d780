# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/models/__init__.py
"""

from .audit_log_models import AuditLog

__all__ = ["AuditLog"]
