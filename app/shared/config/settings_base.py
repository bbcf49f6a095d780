# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_base.py

Base de configuración (Pydantic v2) para Jemputan.
- Esta clase NO instancia singletons ni resuelve .env; eso lo hace config_loader.
- Es la base para settings_dev.py, settings_testing.py y settings_prod.py.

Autor: Jemputan
Fecha: 2026-02-03
"""

from typing import Literal, Optional
from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings


# Tipos de entorno soportados
EnvName = Literal["development", "test", "production"]


class BaseAppSettings(BaseSettings):
    # =========================
    # Núcleo de la aplicación
    # =========================
    python_env: EnvName = Field(default="development", validation_alias="PYTHON_ENV")
    app_name: str = Field(default="Jemputan", validation_alias="APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    # Orígenes CORS separados por coma; vacío = sin CORS
    cors_origins: str = Field(default="", validation_alias="CORS_ORIGINS")

    # =========================
    # Base de datos
    # =========================
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: SecretStr = Field(default=SecretStr("postgres"), validation_alias="DB_PASSWORD")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="jemputan", validation_alias="DB_NAME")
    db_echo_sql: bool = Field(default=False, validation_alias="DB_ECHO_SQL")
    db_command_timeout_s: float = Field(default=5.0, validation_alias="DB_COMMAND_TIMEOUT_S")
    db_url: Optional[str] = Field(default=None, validation_alias="DB_URL")

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """
        URL de conexión completa para SQLAlchemy async.
        Prioriza DB_URL si existe, sino construye desde componentes individuales.
        """
        from urllib.parse import quote_plus

        if self.db_url:
            url = self.db_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url

        pw = quote_plus(self.db_password.get_secret_value())
        return (
            f"postgresql+asyncpg://{quote_plus(self.db_user)}:{pw}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================
    # Ciclo de vida de eventos
    # =========================
    # Zona horaria "de pared" en la que se interpretan event_date/start_time/end_time
    event_timezone: str = Field(default="UTC", validation_alias="EVENT_TIMEZONE")
    cooldown_days: int = Field(default=14, validation_alias="COOLDOWN_DAYS")
    lifecycle_interval_minutes: int = Field(default=60, validation_alias="LIFECYCLE_INTERVAL_MINUTES")

    # =========================
    # Pagos
    # =========================
    payment_window_minutes: int = Field(default=15, validation_alias="PAYMENT_WINDOW_MINUTES")
    payment_expiration_interval_minutes: int = Field(
        default=5, validation_alias="PAYMENT_EXPIRATION_INTERVAL_MINUTES"
    )

    # =========================
    # Detección de abuso
    # =========================
    abuse_expired_threshold: int = Field(default=3, validation_alias="ABUSE_EXPIRED_THRESHOLD")
    abuse_min_attempts: int = Field(default=5, validation_alias="ABUSE_MIN_ATTEMPTS")
    abuse_expire_ratio: float = Field(default=0.5, validation_alias="ABUSE_EXPIRE_RATIO")
    hourly_reset_minutes: int = Field(default=60, validation_alias="HOURLY_RESET_MINUTES")
    max_events_per_hour: int = Field(default=10, validation_alias="MAX_EVENTS_PER_HOUR")

    # =========================
    # Rate limiting (RSVP / mensajes)
    # =========================
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_backend: Literal["memory", "redis"] = Field(default="memory", validation_alias="RATE_LIMIT_BACKEND")
    redis_url: Optional[str] = Field(default=None, validation_alias="REDIS_URL")
    # Solo detrás de un proxy que reescribe estos headers (Cloudflare/nginx)
    trust_proxy_headers: bool = Field(default=False, validation_alias="TRUST_PROXY_HEADERS")

    # Política "max_requests/window_ms" por tipo de llave
    rate_limit_rsvp_ip: str = Field(default="5/60000", validation_alias="RATE_LIMIT_RSVP_IP")
    rate_limit_rsvp_event: str = Field(default="50/60000", validation_alias="RATE_LIMIT_RSVP_EVENT")
    rate_limit_rsvp_phone: str = Field(default="3/300000", validation_alias="RATE_LIMIT_RSVP_PHONE")

    # =========================
    # Scheduler
    # =========================
    scheduler_enabled: bool = Field(default=True, validation_alias="SCHEDULER_ENABLED")

    # =========================
    # Observabilidad / Logging
    # =========================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "pretty", "plain"] = Field(default="pretty", validation_alias="LOG_FORMAT")

    # ===== Helpers de entorno =====
    @computed_field  # type: ignore[misc]
    @property
    def is_dev(self) -> bool:
        return self.python_env == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.python_env == "test"

    @computed_field  # type: ignore[misc]
    @property
    def is_prod(self) -> bool:
        return self.python_env == "production"

    def rate_limit_policies(self) -> dict[str, tuple[int, int]]:
        """Devuelve {key_type: (max_requests, window_ms)} a partir de los strings de ENV."""
        return {
            "ip": _parse_policy(self.rate_limit_rsvp_ip, "RATE_LIMIT_RSVP_IP"),
            "event": _parse_policy(self.rate_limit_rsvp_event, "RATE_LIMIT_RSVP_EVENT"),
            "phone": _parse_policy(self.rate_limit_rsvp_phone, "RATE_LIMIT_RSVP_PHONE"),
        }

    def _consistency_checks(self) -> None:
        """
        Validaciones mínimas de coherencia.
        Se invoca desde config_loader tras instanciar el settings.
        """
        positive = {
            "PAYMENT_WINDOW_MINUTES": self.payment_window_minutes,
            "PAYMENT_EXPIRATION_INTERVAL_MINUTES": self.payment_expiration_interval_minutes,
            "LIFECYCLE_INTERVAL_MINUTES": self.lifecycle_interval_minutes,
            "COOLDOWN_DAYS": self.cooldown_days,
            "HOURLY_RESET_MINUTES": self.hourly_reset_minutes,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} debe ser > 0 (recibido: {value})")

        if not 0 < self.abuse_expire_ratio <= 1:
            raise ValueError("ABUSE_EXPIRE_RATIO debe estar en (0, 1]")

        # Dispara errores de parseo temprano
        self.rate_limit_policies()

        if self.rate_limit_backend == "redis" and not self.redis_url:
            raise ValueError("RATE_LIMIT_BACKEND=redis requiere REDIS_URL")


def _parse_policy(raw: str, env_name: str) -> tuple[int, int]:
    try:
        max_requests, window_ms = (int(p.strip()) for p in raw.split("/", 1))
    except ValueError:
        raise ValueError(f"{env_name} debe tener formato 'max_requests/window_ms' (recibido: {raw!r})")
    if max_requests <= 0 or window_ms <= 0:
        raise ValueError(f"{env_name} requiere valores positivos (recibido: {raw!r})")
    return max_requests, window_ms


__all__ = ["BaseAppSettings", "EnvName"]
# Fin del archivo backend/app/shared/config/settings_base.py
