# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/scheduler_service.py

Adaptador de APScheduler para los ScheduledJob del sistema
(expiración de órdenes y transiciones de ciclo de vida).

Cada job corre con max_instances=1 y coalesce=True: si un tick se
retrasa no se acumulan corridas. Los jobs toleran igualmente un
solapamiento accidental porque sus UPDATE llevan la guarda de estado.

Autor: Jemputan
Fecha: 2026-02-06
"""

import logging
from typing import Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.shared.scheduler.job import ScheduledJob

logger = logging.getLogger(__name__)

# Tolerancia de retraso antes de descartar un tick perdido
MISFIRE_GRACE_SECONDS = 30


def _describe(job, *, with_pending: bool = False) -> dict:
    info = {
        "id": job.id,
        "name": job.name,
        "next_run": getattr(job, "next_run_time", None),
        "trigger": str(job.trigger),
    }
    if with_pending:
        info["pending"] = job.pending
    return info


class SchedulerService:
    """
    Envoltura mínima sobre AsyncIOScheduler (jobstore en memoria, UTC).

    Los jobs se declaran como ScheduledJob; el scheduler invoca
    `ScheduledJob.execute`, que es quien registra métricas y errores.
    """

    def __init__(self):
        self._scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
            timezone="UTC",
        )
        self._started = False

    def start(self) -> None:
        """Arranca el scheduler. Debe llamarse con un event loop activo."""
        if self._started:
            return
        self._scheduler.start()
        self._started = True
        logger.info("[scheduler] iniciado jobs=%s", [j.id for j in self._scheduler.get_jobs()])

    def shutdown(self, wait: bool = True) -> None:
        """Detiene el scheduler; con wait=True espera la corrida en curso."""
        if not self._started:
            return
        self._scheduler.shutdown(wait=wait)
        self._started = False
        logger.info("[scheduler] detenido")

    def add_job(self, job: ScheduledJob) -> str:
        """
        Programa `job` cada `job.interval`.

        Registrar de nuevo el mismo job_id reemplaza la programación previa.
        """
        self._scheduler.add_job(
            func=job.execute,
            trigger=IntervalTrigger(seconds=int(job.interval.total_seconds())),
            id=job.job_id,
            name=job.description or job.job_id,
            replace_existing=True,
        )
        logger.info("[scheduler] job=%s programado cada %s", job.job_id, job.interval)
        return job.job_id

    def remove_job(self, job_id: str) -> bool:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.warning("[scheduler] job=%s no existe; nada que eliminar", job_id)
            return False
        logger.info("[scheduler] job=%s eliminado", job_id)
        return True

    def get_jobs(self) -> list:
        return [_describe(job) for job in self._scheduler.get_jobs()]

    def get_job_status(self, job_id: str) -> Optional[dict]:
        job = self._scheduler.get_job(job_id)
        return _describe(job, with_pending=True) if job else None

    @property
    def is_running(self) -> bool:
        return self._started and self._scheduler.running


_scheduler_instance: Optional[SchedulerService] = None


def get_scheduler() -> SchedulerService:
    """Instancia global del scheduler (se crea en el primer uso)."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = SchedulerService()
    return _scheduler_instance


def reset_scheduler() -> None:
    """Descarta la instancia global (tests)."""
    global _scheduler_instance
    _scheduler_instance = None


# Fin del archivo backend/app/shared/scheduler/scheduler_service.py
