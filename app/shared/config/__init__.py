# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Punto único de acceso a la configuración:
    from app.shared.config import settings

`settings` es un proxy perezoso: no instancia la configuración al importar
(evita validaciones prematuras en tests) y siempre delega en
config_loader.get_settings(), de modo que get_settings.cache_clear()
basta para recargar.
"""

from __future__ import annotations

from typing import Any

from .config_loader import get_settings
from .logging_config import setup_logging


class _SettingsProxy:
    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return f"<SettingsProxy env={get_settings().python_env}>"


settings = _SettingsProxy()

__all__ = ["settings", "get_settings", "setup_logging"]
# Fin del archivo
