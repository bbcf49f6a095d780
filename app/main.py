# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del backend de Jemputan (motor de ciclo de
vida de eventos y estado de pago).

Ajustes clave:
- Configuración vía app.shared.config.settings (pydantic-settings).
- Logging centralizado (plain/json) antes de levantar la app.
- Observabilidad Prometheus (/metrics) vía app.observability.prom.
- Scheduler con los dos jobs periódicos:
    * payments_expire_orders        (cada 5 min)
    * events_lifecycle_transitions  (cada hora)
- Errores de dominio traducidos a HTTP (404 / 409 / 429).

Autor: Jemputan
Fecha: 2026-02-06
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

# ---------------------------------------------------------------------------
# Cargar .env ANTES de leer settings (pydantic-settings lee os.environ)
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=_ENV_PATH, override=False)

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.shared.config import settings, setup_logging
from app.shared.database import reset_engine
from app.shared.scheduler import get_scheduler
from app.shared.security.rate_limit_dep import RateLimitExceeded, rate_limit_response
from app.modules.events.errors import (
    EventNotFound,
    InvariantViolation,
    PaymentOrderNotFound,
)
from app.observability.prom import setup_observability

setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


def _register_jobs() -> list[str]:
    """Registra los jobs periódicos en el scheduler global."""
    from app.modules.events.jobs import register_lifecycle_transitions_job
    from app.modules.payments.jobs import register_expire_payment_orders_job

    return [
        register_expire_payment_orders_job(),
        register_lifecycle_transitions_job(),
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    scheduler = get_scheduler()
    if settings.scheduler_enabled:
        job_ids = _register_jobs()
        scheduler.start()
        logger.info("Scheduler iniciado con jobs: %s", ", ".join(job_ids))
    else:
        logger.info("Scheduler deshabilitado (SCHEDULER_ENABLED=false)")

    logger.info("Backend de %s iniciado (env=%s)", settings.app_name, settings.python_env)
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        logger.info("Iniciando shutdown ordenado...")
        scheduler.shutdown(wait=True)
        await reset_engine()
        logger.info("Backend de %s apagado.", settings.app_name)


openapi_tags = [
    {"name": "events", "description": "Estado de pago/ciclo de vida y guard de acciones"},
    {"name": "audit", "description": "Consulta del ledger de auditoría"},
    {"name": "Health", "description": "Health checks"},
]

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Motor de ciclo de vida de eventos y estado de pago",
    version=settings.app_version,
    lifespan=lifespan,
    openapi_tags=openapi_tags,
)


def _configure_cors(app_instance: FastAPI) -> list[str]:
    """CORS solo con orígenes explícitos (CORS_ORIGINS)."""
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if not origins:
        logger.info("CORS deshabilitado: CORS_ORIGINS vacío")
        return []
    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
        max_age=600,
    )
    logger.info("CORS habilitado para %d origen(es)", len(origins))
    return origins


# Observabilidad Prometheus (/metrics)
# El orden real de middlewares en Starlette es inverso al registro:
# CORS se registra al final para ejecutarse primero.
setup_observability(app)
_configure_cors(app)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION HANDLERS
# ═══════════════════════════════════════════════════════════════════════════════
@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """429 consistente con Retry-After."""
    return rate_limit_response(retry_after=exc.retry_after, limited_by=exc.limited_by)


@app.exception_handler(EventNotFound)
@app.exception_handler(PaymentOrderNotFound)
async def not_found_exception_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvariantViolation)
async def invariant_exception_handler(request: Request, exc: InvariantViolation):
    logger.critical("[http] %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


# Router principal
from app.routes import router as main_router  # noqa: E402

app.include_router(main_router)


@app.get("/")
async def root():
    return {"service": settings.app_name, "status": "active"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.app_host, port=settings.app_port)

# Fin del archivo backend/app/main.py
