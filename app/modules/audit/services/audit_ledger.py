# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/services/audit_ledger.py

Ledger de auditoría append-only.

El ledger nunca hace commit: agrega el registro a la sesión del llamador
para que quede dentro de la MISMA transacción que la transición auditada
(si la transición hace rollback, el registro también).

Autor: Jemputan
Fecha: 2026-02-04
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.enums import AuditAction
from app.modules.audit.models import AuditLog


class AuditLedger:
    """
    Sink de escritura único para audit_logs + consultas de solo lectura.
    """

    DEFAULT_LIMIT = 100
    MAX_LIMIT = 500

    def __init__(self, db: AsyncSession):
        """
        Args:
            db: Sesión SQLAlchemy async activa
        """
        self.db = db

    def append(
        self,
        action: AuditAction,
        details: dict[str, Any],
        *,
        event_id: Optional[int] = None,
        user_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> AuditLog:
        """
        Registra una acción. Soporta eventos de sistema (user_id=None).

        Args:
            action: Tipo de acción
            details: Payload estructurado (JSON)
            event_id: Evento afectado (None para acciones por lote)
            user_id: Usuario afectado/actor (None para sistema)
            created_at: Timestamp explícito (el "now" del job); default del servidor si None
        """
        if user_id is None:
            details = {**details, "actor": "system"}

        entry = AuditLog(
            event_id=event_id,
            user_id=user_id,
            action=str(action),
            details=details,
        )
        if created_at is not None:
            entry.created_at = created_at

        self.db.add(entry)
        return entry

    async def query(
        self,
        *,
        event_id: Optional[int] = None,
        action: Optional[AuditAction | str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> Sequence[AuditLog]:
        """
        Registros por evento y/o tipo de acción, del más reciente al más antiguo.
        """
        limit = max(1, min(limit, self.MAX_LIMIT))
        stmt = select(AuditLog)
        if event_id is not None:
            stmt = stmt.where(AuditLog.event_id == event_id)
        if action is not None:
            stmt = stmt.where(AuditLog.action == str(action))
        stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)

        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def for_event(self, event_id: int, limit: int = DEFAULT_LIMIT) -> Sequence[AuditLog]:
        return await self.query(event_id=event_id, limit=limit)

    async def by_action(self, action: AuditAction | str, limit: int = DEFAULT_LIMIT) -> Sequence[AuditLog]:
        return await self.query(action=action, limit=limit)


__all__ = ["AuditLedger"]
# Fin del archivo backend/app/modules/audit/services/audit_ledger.py
