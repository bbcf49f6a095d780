# -*- coding: utf-8 -*-
import os

import pytest

from app.shared.config.config_loader import get_settings

_ENV_PREFIXES = (
    "DB_", "APP_", "CORS_", "REDIS_", "RATE_LIMIT_", "EVENT_", "COOLDOWN_",
    "LIFECYCLE_", "PAYMENT_", "ABUSE_", "HOURLY_", "MAX_EVENTS_", "LOG_",
    "SCHEDULER_", "TRUST_PROXY_",
)


@pytest.fixture(autouse=True)
def _isolate_env_and_cache(monkeypatch):
    """
    Aísla variables de entorno y limpia el caché de get_settings() en cada test.
    """
    # No heredar configuración del shell del dev
    for k in list(os.environ.keys()):
        if k.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(k, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
# Fin del archivo backend/tests/shared/config/conftest.py
