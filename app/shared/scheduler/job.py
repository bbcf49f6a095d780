# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/job.py

Interfaz de job periódico, independiente del scheduler concreto.

Un ScheduledJob declara:
- job_id    : nombre estable (id en APScheduler, label en métricas)
- interval  : cada cuánto se invoca
- run       : entry point async sin argumentos
- description

Política de reintento:
    Una excepción que escapa de `run` se registra, cuenta como
    status="failed" y se re-lanza al scheduler. No hay reintento con
    backoff dentro de la misma ejecución: el siguiente tick ES el
    reintento. Los jobs son idempotentes por construcción (sus WHERE
    excluyen filas ya transicionadas), así que re-ejecutar es seguro.

Autor: Jemputan
Fecha: 2026-02-06
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from time import perf_counter
from typing import Any, Awaitable, Callable

from app.observability.job_metrics import JOB_DURATION, JOB_RUNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledJob:
    job_id: str
    interval: timedelta
    run: Callable[[], Awaitable[Any]]
    description: str = ""

    async def execute(self) -> Any:
        """Ejecuta `run` una vez, con métricas y logging del resultado."""
        start = perf_counter()
        try:
            result = await self.run()
        except Exception:
            JOB_RUNS.labels(self.job_id, "failed").inc()
            logger.exception(
                "[scheduler] job=%s falló; se reintenta en el siguiente tick (%s)",
                self.job_id,
                self.interval,
            )
            raise
        finally:
            JOB_DURATION.labels(self.job_id).observe(perf_counter() - start)

        JOB_RUNS.labels(self.job_id, "success").inc()
        logger.debug("[scheduler] job=%s ok result=%s", self.job_id, result)
        return result


__all__ = ["ScheduledJob"]
