# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/datetime_utils.py

Helpers de tiempo compartidos por jobs y servicios.

Todos los timestamps persistidos son UTC-aware. SQLite (tests) devuelve
datetimes naive aunque la columna sea DateTime(timezone=True), por eso
todo valor leído de BD pasa por ensure_utc() antes de compararse.

Autor: Jemputan
Fecha: 2026-02-04
"""

import datetime as dt
from typing import Optional


def now_utc() -> dt.datetime:
    """
    Retorna timestamp actual UTC.

    Centralizado para facilitar testing con mocks.
    """
    return dt.datetime.now(dt.timezone.utc)


def ensure_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """
    Normaliza un datetime a UTC-aware.

    - None se devuelve tal cual.
    - Naive se interpreta como UTC (así se escribió).
    - Aware se convierte a UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


__all__ = ["now_utc", "ensure_utc"]
# Fin del archivo backend/app/shared/utils/datetime_utils.py
