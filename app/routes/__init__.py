# -*- coding: utf-8 -*-
"""
backend/app/routes/__init__.py

Ensamblador de ruteadores de la API.

- /health            : sin prefijo
- /api/events/...    : estado de eventos y guard de acciones
- /api/audit         : consulta del ledger de auditoría

Autor: Jemputan
Fecha: 2026-02-06
"""

import logging

from fastapi import APIRouter

from app.modules.audit.routes import router as audit_router
from app.modules.events.routes import router as events_router

from .health_routes import router as health_router

logger = logging.getLogger(__name__)

api = APIRouter(prefix="/api")
api.include_router(events_router)
api.include_router(audit_router)

router = APIRouter()

# Health check sin prefijo adicional
router.include_router(health_router)
router.include_router(api)

__all__ = ["router"]

# Fin del archivo backend/app/routes/__init__.py
