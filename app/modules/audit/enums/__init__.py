# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/enums/__init__.py
"""

from .audit_action_enum import AuditAction

__all__ = ["AuditAction"]
