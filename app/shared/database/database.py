# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async (asyncpg en producción, aiosqlite en tests).

Provee:
- get_engine() / get_sessionmaker() (creación perezosa a partir de settings)
- Base (DeclarativeBase con naming convention para Alembic)
- Dependencia FastAPI: get_async_session
- context manager: session_scope() para jobs y scripts
- check_database_health()
- reset_engine() para tests

Notas:
- El engine se crea en el primer uso, no al importar: los tests pueden
  fijar DB_URL antes de tocarlo.
- command_timeout (asyncpg) acota cada consulta; los jobs no tienen otro
  mecanismo de timeout.

Autor: Jemputan
Fecha: 2026-02-03
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.shared.config import settings
from app.shared.database.base import Base  # reutilizamos la Base única

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def _connect_args(url: str) -> dict:
    if url.startswith("postgresql+asyncpg"):
        return {
            "command_timeout": float(settings.db_command_timeout_s),
            "server_settings": {"search_path": "public"},
        }
    return {}


def get_engine() -> AsyncEngine:
    """Devuelve el engine global, creándolo en el primer uso."""
    global _engine
    if _engine is None:
        url = settings.database_url
        _engine = create_async_engine(
            url,
            echo=bool(settings.db_echo_sql),
            pool_pre_ping=url.startswith("postgresql"),
            connect_args=_connect_args(url),
        )
        logger.info("[DB] Engine creado (dialect=%s)", _engine.dialect.name)
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
            class_=AsyncSession,
            autoflush=False,
        )
    return _sessionmaker


async def reset_engine() -> None:
    """Descarta engine y sessionmaker (tests / recarga de settings)."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


# ── Dependencia FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_sessionmaker()() as session:
        try:
            yield session
        except SQLAlchemyError:
            # Importante: rollback para liberar cualquier transacción/lock
            await session.rollback()
            raise


# ── Context manager reutilizable en jobs/scripts
@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with get_sessionmaker()() as session:
        try:
            yield session
            # Dejo el commit a quien use el scope; esto es solo un helper
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with get_engine().connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("[DB] Health check falló: %s", e)
        return False


__all__ = [
    "Base",
    "get_engine",
    "get_sessionmaker",
    "reset_engine",
    "get_async_session",
    "session_scope",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
