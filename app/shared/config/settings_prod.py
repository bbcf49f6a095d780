# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_prod.py

Overrides para entorno de PRODUCCIÓN usando Pydantic v2.
Forza lectura solo desde variables de entorno / secret stores
y activa logging estable (INFO en JSON).

Autor: Jemputan
Fecha: 2026-02-03
"""

from typing import Literal
from .settings_base import BaseAppSettings
from pydantic_settings import SettingsConfigDict


class ProdSettings(BaseAppSettings):
    # --- Identidad de entorno ---
    python_env: Literal["development", "test", "production"] = "production"

    # --- Logging en prod: nivel estable y formato estructurado ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "pretty", "plain"] = "json"

    model_config = SettingsConfigDict(
        env_file=None,  # No leemos .env en producción
        extra="ignore",
    )

    def _consistency_checks(self) -> None:
        super()._consistency_checks()
        # Con varias réplicas los contadores en memoria no se comparten
        if self.rate_limit_enabled and self.rate_limit_backend == "memory":
            import logging
            logging.getLogger(__name__).warning(
                "RATE_LIMIT_BACKEND=memory en producción: el límite es best-effort por proceso"
            )


__all__ = ["ProdSettings"]
# Fin del archivo backend/app/shared/config/settings_prod.py
