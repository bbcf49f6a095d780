# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Health check del backend: conectividad a la base de datos y estado del
scheduler de jobs.

Autor: Jemputan
Fecha: 2026-02-06
"""

from fastapi import APIRouter

from app.shared.config import settings
from app.shared.database import check_database_health
from app.shared.scheduler import get_scheduler
from app.shared.utils.datetime_utils import now_utc

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    summary="Health check del backend",
    description=(
        "Devuelve el estado básico del backend, incluyendo conectividad a la "
        "base de datos y los jobs programados registrados."
    ),
)
async def health_check() -> dict:
    db_ok = await check_database_health(timeout_s=2.0)
    scheduler = get_scheduler()

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": now_utc().isoformat(),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "scheduler": {
            "running": scheduler.is_running,
            "jobs": [job["id"] for job in scheduler.get_jobs()],
        },
        "service": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
    }


@router.get("/health/live", summary="Liveness probe")
async def health_live() -> dict:
    return {"live": True}

# Fin del archivo backend/app/routes/health_routes.py
