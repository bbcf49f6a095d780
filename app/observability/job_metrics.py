# -*- coding: utf-8 -*-
"""
backend/app/observability/job_metrics.py

Métricas Prometheus del motor de ciclo de vida.

Métricas expuestas:
- lifecycle_job_runs_total{job,status}        - Ejecuciones por job (success|failed)
- lifecycle_job_duration_seconds{job}         - Duración por ejecución
- lifecycle_transitions_total{transition}     - Filas transicionadas por fase
- payment_orders_expired_total                - Órdenes expiradas por el barrido
- abuse_flags_raised_total                    - Usuarios marcados (flip 0->1)
- rate_limit_denied_total{key_type}           - Rechazos del rate limiter (ip|event|phone)

Los collectors se crean con get_or_create_* para que recargar módulos en
tests no dispare "Duplicated timeseries in CollectorRegistry".

Autor: Jemputan
Fecha: 2026-02-06
"""
from __future__ import annotations

from prometheus_client import Counter, Histogram, REGISTRY


def _get_existing_metric(name: str):
    """Busca una métrica existente en el registry por nombre."""
    names_to_collectors = getattr(REGISTRY, "_names_to_collectors", {})
    return names_to_collectors.get(name)


def get_or_create_counter(name: str, description: str, labelnames: tuple = ()) -> Counter:
    """Obtiene contador existente o crea uno nuevo (evita duplicados en tests)."""
    existing = _get_existing_metric(name)
    if existing is not None:
        return existing
    try:
        return Counter(name, description, labelnames=labelnames)
    except ValueError:
        return _get_existing_metric(name)


def get_or_create_histogram(name: str, description: str, labelnames: tuple = ()) -> Histogram:
    """Obtiene histograma existente o crea uno nuevo (evita duplicados en tests)."""
    existing = _get_existing_metric(name)
    if existing is not None:
        return existing
    try:
        return Histogram(name, description, labelnames=labelnames)
    except ValueError:
        return _get_existing_metric(name)


JOB_RUNS = get_or_create_counter(
    "lifecycle_job_runs_total",
    "Scheduled job executions by outcome",
    labelnames=("job", "status"),
)
JOB_DURATION = get_or_create_histogram(
    "lifecycle_job_duration_seconds",
    "Scheduled job execution time (s)",
    labelnames=("job",),
)
LIFECYCLE_TRANSITIONS = get_or_create_counter(
    "lifecycle_transitions_total",
    "Events moved by the lifecycle job, per transition",
    labelnames=("transition",),
)
PAYMENT_ORDERS_EXPIRED = get_or_create_counter(
    "payment_orders_expired_total",
    "Payment orders expired by the sweep",
)
ABUSE_FLAGS_RAISED = get_or_create_counter(
    "abuse_flags_raised_total",
    "Users flagged for payment abandonment",
)
RATE_LIMIT_DENIED = get_or_create_counter(
    "rate_limit_denied_total",
    "Requests denied by the fixed-window rate limiter",
    labelnames=("key_type",),
)


__all__ = [
    "get_or_create_counter",
    "get_or_create_histogram",
    "JOB_RUNS",
    "JOB_DURATION",
    "LIFECYCLE_TRANSITIONS",
    "PAYMENT_ORDERS_EXPIRED",
    "ABUSE_FLAGS_RAISED",
    "RATE_LIMIT_DENIED",
]
# Fin del archivo backend/app/observability/job_metrics.py
