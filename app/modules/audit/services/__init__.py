# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/services/__init__.py
"""

from .audit_ledger import AuditLedger

__all__ = ["AuditLedger"]
