# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/enums/audit_action_enum.py

Acciones registradas en audit_logs.

- PAYMENT_EXPIRED            : una orden superó su ventana de pago (job de expiración)
- PAYMENT_VERIFIED           : confirmación síncrona de una orden
- PAYMENT_FAILED             : la pasarela rechazó la orden
- PAYMENT_STATE_CHANGE       : cambio efectivo de payment_state/lifecycle_state
- LIFECYCLE_BATCH_TRANSITION : una fase del job horario (un registro por lote)
- EVENT_DISABLED             : archivado + paso a DISABLED (incluye el resumen)
- EVENT_DETAILS_PURGED       : purga opcional de filas de detalle
- USER_FLAGGED               : AccountFlag.is_flagged pasó de 0 a 1

Autor: Jemputan
Fecha: 2026-02-04
"""

from enum import StrEnum


class AuditAction(StrEnum):
    PAYMENT_EXPIRED = "PAYMENT_EXPIRED"
    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_STATE_CHANGE = "PAYMENT_STATE_CHANGE"
    LIFECYCLE_BATCH_TRANSITION = "LIFECYCLE_BATCH_TRANSITION"
    EVENT_DISABLED = "EVENT_DISABLED"
    EVENT_DETAILS_PURGED = "EVENT_DETAILS_PURGED"
    USER_FLAGGED = "USER_FLAGGED"


__all__ = ["AuditAction"]
