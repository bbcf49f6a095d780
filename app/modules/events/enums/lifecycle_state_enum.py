# -*- coding: utf-8 -*-
"""
backend/app/modules/events/enums/lifecycle_state_enum.py

Enum: lifecycle_state_enum
Posición del evento en su línea de tiempo operativa.

Valores: ('DRAFT', 'SCHEDULED', 'LIVE', 'ENDED', 'COOLING', 'DISABLED')

📋 REGLA DE PAGO:
- Cualquier estado distinto de DRAFT exige payment_state == PAID.
- Si payment_state vuelve a NO_PAID, lifecycle_state vuelve a DRAFT
  en la misma escritura.

Autor: Jemputan
Fecha: 2026-02-04
"""

from enum import StrEnum


class LifecycleState(StrEnum):
    """
    Valores:
    - DRAFT     : editable, sin pago confirmado
    - SCHEDULED : pagado, antes del inicio
    - LIVE      : entre inicio (inclusivo) y fin (exclusivo)
    - ENDED     : terminado; cooldown_until fijado al entrar
    - COOLING   : retención post-evento (solo lectura/exportación)
    - DISABLED  : terminal; estadísticas archivadas
    """
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    ENDED = "ENDED"
    COOLING = "COOLING"
    DISABLED = "DISABLED"


# Estados que requieren payment_state == PAID
PAID_ONLY_STATES = frozenset({
    LifecycleState.SCHEDULED,
    LifecycleState.LIVE,
    LifecycleState.ENDED,
    LifecycleState.COOLING,
    LifecycleState.DISABLED,
})

# Estados elegibles para archivado
COOLDOWN_STATES = frozenset({LifecycleState.ENDED, LifecycleState.COOLING})


__all__ = ["LifecycleState", "PAID_ONLY_STATES", "COOLDOWN_STATES"]
# Fin del archivo backend/app/modules/events/enums/lifecycle_state_enum.py
