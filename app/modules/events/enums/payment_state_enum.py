# -*- coding: utf-8 -*-
"""
backend/app/modules/events/enums/payment_state_enum.py

Enum: payment_state_enum
Estado de pago del paquete de un evento.

Valores: ('NO_PAID', 'PENDING', 'PAID')

⚠️ DISTINCIÓN SEMÁNTICA:
- PaymentState: si el paquete del evento está comprado y confirmado.
- PaymentOrderStatus (módulo payments): estado de UN intento de checkout.
  Un evento PAID puede tener órdenes expiradas en su historial.

Autor: Jemputan
Fecha: 2026-02-04
"""

from enum import StrEnum


class PaymentState(StrEnum):
    """
    Valores:
    - NO_PAID : sin paquete pagado (o pago revertido por expiración)
    - PENDING : checkout iniciado, esperando confirmación
    - PAID    : pago verificado; único estado que habilita el ciclo de vida
    """
    NO_PAID = "NO_PAID"
    PENDING = "PENDING"
    PAID = "PAID"


__all__ = ["PaymentState"]
# Fin del archivo backend/app/modules/events/enums/payment_state_enum.py
