# -*- coding: utf-8 -*-
"""
backend/app/modules/abuse/services/abuse_service.py

Contadores de abuso por usuario (account_flags).

Escrituras:
- record_expired_payment()   : job de expiración; expired y attempts +1
- record_payment_attempt()   : verificación exitosa; attempts +1
- record_checkout_activity() : checkout iniciado; ventana horaria +1
- evaluate_abuse_thresholds(): flip is_flagged 0 -> 1 (una sola vez)
- reset_hourly_counters()    : limpia la ventana horaria vencida

Lectura/guard:
- check_user_can_create_event(): freno de checkouts por hora

Todos los contadores se actualizan con un upsert atómico en BD
(INSERT ... ON CONFLICT (user_id) DO UPDATE), nunca leyendo y
reescribiendo en Python. Ninguna función hace commit salvo
check_user_can_create_event.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, case, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.abuse.models import AccountFlag
from app.modules.audit.enums import AuditAction
from app.modules.audit.services import AuditLedger
from app.observability.job_metrics import ABUSE_FLAGS_RAISED
from app.shared.config import settings
from app.shared.utils.datetime_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

_flags = AccountFlag.__table__


def _insert_for(db: AsyncSession):
    """INSERT con soporte ON CONFLICT del dialecto activo."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(_flags)
    if dialect == "sqlite":
        return sqlite.insert(_flags)
    raise RuntimeError(f"Upsert de account_flags no soportado para dialecto '{dialect}'")


async def _upsert(db: AsyncSession, user_id: int, now: datetime, insert_values: dict, update_set: dict) -> None:
    stmt = _insert_for(db).values(user_id=user_id, updated_at=now, **insert_values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[_flags.c.user_id],
        set_={**update_set, "updated_at": now},
    )
    await db.execute(stmt)


async def record_expired_payment(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> None:
    """Una orden del usuario expiró: ambos contadores +1."""
    await _upsert(
        db,
        user_id,
        now or now_utc(),
        insert_values={"expired_payment_count": 1, "total_payment_attempts": 1},
        update_set={
            "expired_payment_count": _flags.c.expired_payment_count + 1,
            "total_payment_attempts": _flags.c.total_payment_attempts + 1,
        },
    )


async def record_payment_attempt(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> None:
    """Una orden del usuario se verificó: attempts +1."""
    await _upsert(
        db,
        user_id,
        now or now_utc(),
        insert_values={"total_payment_attempts": 1},
        update_set={"total_payment_attempts": _flags.c.total_payment_attempts + 1},
    )


async def record_checkout_activity(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> None:
    """
    El usuario inició un checkout: cuenta en la ventana horaria.

    Si el último checkout es de hace más de una hora, la ventana
    reinicia en 1 aunque el reset periódico aún no haya corrido.
    """
    now = now or now_utc()
    cutoff = now - timedelta(minutes=settings.hourly_reset_minutes)
    await _upsert(
        db,
        user_id,
        now,
        insert_values={"events_created_last_hour": 1, "last_event_created_at": now},
        update_set={
            "events_created_last_hour": case(
                (_flags.c.last_event_created_at < cutoff, 1),
                else_=_flags.c.events_created_last_hour + 1,
            ),
            "last_event_created_at": now,
        },
    )


def should_flag(
    expired_payment_count: int,
    total_payment_attempts: int,
    *,
    expired_threshold: Optional[int] = None,
    min_attempts: Optional[int] = None,
    expire_ratio: Optional[float] = None,
) -> bool:
    """
    Umbral de abuso:
    - expired >= ABUSE_EXPIRED_THRESHOLD (3), o
    - attempts >= ABUSE_MIN_ATTEMPTS (5) y expired/attempts > ABUSE_EXPIRE_RATIO (0.5)
    """
    expired_threshold = settings.abuse_expired_threshold if expired_threshold is None else expired_threshold
    min_attempts = settings.abuse_min_attempts if min_attempts is None else min_attempts
    expire_ratio = settings.abuse_expire_ratio if expire_ratio is None else expire_ratio

    if expired_payment_count >= expired_threshold:
        return True
    if total_payment_attempts >= min_attempts:
        return expired_payment_count / total_payment_attempts > expire_ratio
    return False


async def evaluate_abuse_thresholds(
    db: AsyncSession,
    user_ids: Iterable[int],
    now: Optional[datetime] = None,
) -> list[int]:
    """
    Marca (is_flagged=1) a los usuarios que cruzaron el umbral.

    El flip es un UPDATE con guarda `is_flagged = false`: solo la primera
    evaluación que lo logra agrega el audit USER_FLAGGED; evaluaciones
    posteriores son no-op.

    Returns:
        user_ids marcados en esta llamada
    """
    now = now or now_utc()
    ids = sorted(set(user_ids))
    if not ids:
        return []

    rows = (
        await db.execute(
            select(
                AccountFlag.user_id,
                AccountFlag.expired_payment_count,
                AccountFlag.total_payment_attempts,
            ).where(AccountFlag.user_id.in_(ids), AccountFlag.is_flagged.is_(False))
        )
    ).all()

    ledger = AuditLedger(db)
    flagged: list[int] = []
    for row in rows:
        if not should_flag(row.expired_payment_count, row.total_payment_attempts):
            continue

        res = await db.execute(
            update(AccountFlag)
            .where(AccountFlag.user_id == row.user_id, AccountFlag.is_flagged.is_(False))
            .values(is_flagged=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if not res.rowcount:
            continue

        ledger.append(
            AuditAction.USER_FLAGGED,
            {
                "expired_payment_count": row.expired_payment_count,
                "total_payment_attempts": row.total_payment_attempts,
                "expire_ratio": round(row.expired_payment_count / row.total_payment_attempts, 4)
                if row.total_payment_attempts else 0.0,
            },
            user_id=row.user_id,
            created_at=now,
        )
        ABUSE_FLAGS_RAISED.inc()
        flagged.append(row.user_id)
        logger.warning(
            "[abuse] user=%s marcado: expired=%d attempts=%d",
            row.user_id,
            row.expired_payment_count,
            row.total_payment_attempts,
        )

    return flagged


async def reset_hourly_counters(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Pone en 0 events_created_last_hour/is_rate_limited de usuarios cuyo
    último checkout tiene más de HOURLY_RESET_MINUTES. No-op si ya están en 0.

    Returns:
        Filas reiniciadas
    """
    now = now or now_utc()
    cutoff = now - timedelta(minutes=settings.hourly_reset_minutes)

    res = await db.execute(
        update(AccountFlag)
        .where(
            AccountFlag.last_event_created_at < cutoff,
            or_(
                AccountFlag.events_created_last_hour != 0,
                AccountFlag.is_rate_limited.is_(True),
            ),
        )
        .values(events_created_last_hour=0, is_rate_limited=False, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount


@dataclass(frozen=True)
class CreationCheck:
    blocked: bool
    code: Optional[str] = None
    reason: Optional[str] = None


async def check_user_can_create_event(
    db: AsyncSession,
    user_id: int,
    now: Optional[datetime] = None,
) -> CreationCheck:
    """
    Freno de checkouts: bloquea si el usuario ya está limitado o si acumula
    MAX_EVENTS_PER_HOUR checkouts en la última hora (en cuyo caso queda
    is_rate_limited=1 hasta el reset horario). Hace commit si limita.
    """
    now = now or now_utc()
    flag = (
        await db.execute(
            select(AccountFlag)
            .where(AccountFlag.user_id == user_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if flag is None:
        return CreationCheck(blocked=False)

    if flag.is_rate_limited:
        return CreationCheck(True, "RATE_LIMITED", "Rate limited due to suspicious activity")

    last = ensure_utc(flag.last_event_created_at)
    window_open = last is not None and now - last <= timedelta(minutes=settings.hourly_reset_minutes)
    if window_open and flag.events_created_last_hour >= settings.max_events_per_hour:
        await db.execute(
            update(AccountFlag)
            .where(and_(AccountFlag.user_id == user_id, AccountFlag.is_rate_limited.is_(False)))
            .values(is_rate_limited=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.warning(
            "[abuse] user=%s limitado: %d checkouts en la última hora",
            user_id,
            flag.events_created_last_hour,
        )
        return CreationCheck(True, "RATE_LIMIT_EXCEEDED", "Too many events created. Please try again later.")

    return CreationCheck(blocked=False)


__all__ = [
    "record_expired_payment",
    "record_payment_attempt",
    "record_checkout_activity",
    "should_flag",
    "evaluate_abuse_thresholds",
    "reset_hourly_counters",
    "CreationCheck",
    "check_user_can_create_event",
]
