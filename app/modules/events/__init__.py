# -*- coding: utf-8 -*-
"""
backend/app/modules/events/__init__.py

Módulo de eventos: ciclo de vida (DRAFT → SCHEDULED → LIVE → ENDED →
COOLING → DISABLED), API única de transición de estado de pago/ciclo,
archivado de estadísticas y job horario de transiciones.

Autor: Jemputan
Fecha: 2026-02-04
"""
