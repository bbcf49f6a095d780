# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/__init__.py

Sistema de jobs programados usando APScheduler.

Autor: Jemputan
Fecha: 2026-02-06
"""

from .job import ScheduledJob
from .scheduler_service import SchedulerService, get_scheduler, reset_scheduler

__all__ = [
    "ScheduledJob",
    "SchedulerService",
    "get_scheduler",
    "reset_scheduler",
]
