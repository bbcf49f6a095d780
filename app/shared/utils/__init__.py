# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/__init__.py

Exportación de utilidades comunes.

Autor: Jemputan
Fecha: 2026-02-04
"""

from .datetime_utils import now_utc, ensure_utc
from .validators import normalize_phone, validate_phone

__all__ = [
    "now_utc",
    "ensure_utc",
    "normalize_phone",
    "validate_phone",
]
