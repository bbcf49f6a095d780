# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Configuración centralizada de logging para Jemputan.
Soporta formato plain (desarrollo) y json (producción).

Los jobs programados no tienen un "caller" al que reportar: sus resultados
terminan en el ledger de auditoría y en estos logs, por eso se fija aquí
el nivel de los loggers de APScheduler y SQLAlchemy.

Autor: Jemputan
Fecha: 2026-02-03
"""

import logging.config
from typing import Literal

# Loggers de terceros que se silencian por debajo de WARNING
_NOISY_LOGGERS = (
    "apscheduler.executors.default",
    "apscheduler.scheduler",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain"
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    use_json = fmt == "json"

    formatters = {
        "default": {
            "format": "%(asctime)s %(levelname)s [%(name)s]: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else "default",
            "stream": "ext://sys.stdout",
        }
    }

    loggers = {
        name: {"level": "WARNING", "propagate": True}
        for name in _NOISY_LOGGERS
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["setup_logging"]
# Fin del archivo backend/app/shared/config/logging_config.py
