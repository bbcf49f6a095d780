# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/__init__.py

Módulo de órdenes de pago de Jemputan.

Este módulo gestiona:
- PaymentOrder (una por intento de checkout, ventana fija de 15 minutos)
- Verificación síncrona (éxito) y rechazo de la pasarela (falla)
- Job de expiración de órdenes vencidas

Estructura:
- enums: PaymentOrderStatus
- models: PaymentOrder
- services: checkout, verificación, transiciones de orden
- jobs: expiración periódica
"""
