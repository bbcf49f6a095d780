# -*- coding: utf-8 -*-
"""
backend/app/modules/events/jobs/__init__.py

Jobs programados del módulo de eventos.
"""

from .lifecycle_transitions_job import (
    LIFECYCLE_JOB_ID,
    LifecycleRunResult,
    run_lifecycle_transitions,
    build_lifecycle_transitions_job,
    register_lifecycle_transitions_job,
)

__all__ = [
    "LIFECYCLE_JOB_ID",
    "LifecycleRunResult",
    "run_lifecycle_transitions",
    "build_lifecycle_transitions_job",
    "register_lifecycle_transitions_job",
]
