# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/schemas/__init__.py
"""

from .audit_log_schemas import AuditLogRead, AuditLogListResponse

__all__ = ["AuditLogRead", "AuditLogListResponse"]
