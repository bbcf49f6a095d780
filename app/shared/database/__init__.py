# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: Jemputan
Fecha: 2026-02-03
"""

from __future__ import annotations

from .database import (
    get_engine,
    get_sessionmaker,
    reset_engine,
    get_async_session,
    session_scope,
    check_database_health,
)
from .base import Base, NAMING_CONVENTION, JSONType, BigIntPK, as_str_enum

__all__ = [
    "Base",
    "NAMING_CONVENTION",
    "JSONType",
    "BigIntPK",
    "as_str_enum",
    "get_engine",
    "get_sessionmaker",
    "reset_engine",
    "get_async_session",
    "session_scope",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
