# -*- coding: utf-8 -*-
"""
backend/app/modules/events/errors.py

Taxonomía de errores del motor de ciclo de vida y estado de pago.

- TransientStoreError : store inalcanzable; aborta la fase actual y se
                        propaga al scheduler (reintento en el siguiente tick).
- PartialRowError     : falla la escritura dependiente de UNA fila; se
                        registra, se hace rollback y se salta. La fila sigue
                        siendo elegible en la siguiente ejecución.
- RaceLossError       : un UPDATE con guarda afectó 0 filas porque otro
                        camino ya transicionó la fila. Se trata como éxito.
- InvariantViolation  : la operación rompería una regla de dinero/ciclo
                        (p. ej. avanzar fuera de DRAFT sin PAID). Se registra
                        en CRITICAL y la fila no se toca.

Autor: Jemputan
Fecha: 2026-02-04
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError


class LifecycleError(Exception):
    """Base de todos los errores del motor de ciclo de vida."""


class TransientStoreError(LifecycleError):
    """El store no respondió; la fase se reintenta en el siguiente tick."""
    def __init__(self, phase: str, cause: BaseException | None = None):
        self.phase = phase
        self.cause = cause
        super().__init__(f"Store no disponible durante '{phase}': {cause}")


class PartialRowError(LifecycleError):
    """Falla acotada a una fila; el barrido continúa con las demás."""
    def __init__(self, row_id, cause: BaseException | None = None, message: str | None = None):
        self.row_id = row_id
        self.cause = cause
        super().__init__(message or f"Fila {row_id} omitida: {cause}")


class RaceLossError(LifecycleError):
    """La fila ya fue transicionada por un camino concurrente (0 filas afectadas)."""
    def __init__(self, entity: str, row_id, expected: str):
        self.entity = entity
        self.row_id = row_id
        self.expected = expected
        super().__init__(f"{entity} {row_id} ya no estaba en {expected}")


class InvariantViolation(LifecycleError):
    """La transición pedida rompería una invariante de pago/ciclo de vida."""
    def __init__(self, row_id, message: str):
        self.row_id = row_id
        super().__init__(f"Invariante violada en {row_id}: {message}")


class EventNotFound(LifecycleError):
    def __init__(self, event_id):
        self.event_id = event_id
        super().__init__(f"Evento no encontrado: {event_id}")


class PaymentOrderNotFound(LifecycleError):
    def __init__(self, order_ref):
        self.order_ref = order_ref
        super().__init__(f"Orden de pago no encontrada: {order_ref}")


_TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError, DisconnectionError, ConnectionError)


@asynccontextmanager
async def transient_store_errors(phase: str) -> AsyncIterator[None]:
    """
    Traduce errores de conectividad de SQLAlchemy a TransientStoreError.

    Uso:
        async with transient_store_errors("scheduled_to_live"):
            result = await db.execute(stmt)
    """
    try:
        yield
    except _TRANSIENT_DB_ERRORS as e:
        raise TransientStoreError(phase, e) from e


__all__ = [
    "LifecycleError",
    "TransientStoreError",
    "PartialRowError",
    "RaceLossError",
    "InvariantViolation",
    "EventNotFound",
    "PaymentOrderNotFound",
    "transient_store_errors",
]

# Fin del archivo backend/app/modules/events/errors.py
