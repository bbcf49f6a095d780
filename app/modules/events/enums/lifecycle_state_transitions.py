# -*- coding: utf-8 -*-
"""
backend/app/modules/events/enums/lifecycle_state_transitions.py

Mapa de transiciones válidas para LifecycleState.

Reglas de transición:
- DRAFT     → SCHEDULED                   (pago verificado)
- SCHEDULED → LIVE | DRAFT                (inicio del evento o reversión de pago)
- LIVE      → ENDED | DRAFT               (fin del evento o reversión de pago)
- ENDED     → COOLING | DISABLED | DRAFT  (retención, archivado o reversión)
- COOLING   → DISABLED | DRAFT            (archivado o reversión)
- DISABLED  → (estado terminal, sin transiciones)

Autor: Jemputan
Fecha: 2026-02-04
"""

from typing import Dict, Set

from .lifecycle_state_enum import LifecycleState


# Mapa de transiciones válidas: estado_origen → {estados_destino_permitidos}
VALID_LIFECYCLE_TRANSITIONS: Dict[LifecycleState, Set[LifecycleState]] = {
    LifecycleState.DRAFT: {
        LifecycleState.SCHEDULED,
    },
    LifecycleState.SCHEDULED: {
        LifecycleState.LIVE,
        LifecycleState.DRAFT,
    },
    LifecycleState.LIVE: {
        LifecycleState.ENDED,
        LifecycleState.DRAFT,
    },
    LifecycleState.ENDED: {
        LifecycleState.COOLING,
        LifecycleState.DISABLED,
        LifecycleState.DRAFT,
    },
    LifecycleState.COOLING: {
        LifecycleState.DISABLED,
        LifecycleState.DRAFT,
    },
    LifecycleState.DISABLED: set(),  # Estado terminal, sin transiciones
}


def is_valid_lifecycle_transition(
    from_state: LifecycleState,
    to_state: LifecycleState,
) -> bool:
    """True si la transición está permitida por el mapa."""
    return to_state in VALID_LIFECYCLE_TRANSITIONS.get(from_state, set())


def get_allowed_transitions(from_state: LifecycleState) -> Set[LifecycleState]:
    return VALID_LIFECYCLE_TRANSITIONS.get(from_state, set())


def validate_lifecycle_transition(
    from_state: LifecycleState,
    to_state: LifecycleState,
) -> None:
    """
    Valida una transición de estado, lanzando excepción si no es válida.

    Raises:
        ValueError: Si la transición no es válida.
    """
    if not is_valid_lifecycle_transition(from_state, to_state):
        allowed = get_allowed_transitions(from_state)
        allowed_str = ", ".join(sorted(s.value for s in allowed)) if allowed else "ninguno"
        raise ValueError(
            f"Transición de ciclo de vida inválida: '{from_state.value}' → '{to_state.value}'. "
            f"Transiciones permitidas desde '{from_state.value}': {allowed_str}"
        )


__all__ = [
    "VALID_LIFECYCLE_TRANSITIONS",
    "is_valid_lifecycle_transition",
    "get_allowed_transitions",
    "validate_lifecycle_transition",
]

# Fin del archivo backend/app/modules/events/enums/lifecycle_state_transitions.py
