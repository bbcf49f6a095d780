# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/models/audit_log_models.py

Modelo ORM para la tabla audit_logs (append-only).

`action` se guarda como texto libre (no enum de BD): el ledger debe poder
leer registros históricos aunque AuditAction cambie.

Autor: Jemputan
Fecha: 2026-02-04
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, JSONType


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # Sin FK: el registro sobrevive aunque se purguen detalles del evento
    event_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    action: Mapped[str] = mapped_column(String(64), nullable=False)

    details: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_audit_logs_event_created", "event_id", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog id={self.id} action={self.action} event_id={self.event_id}>"


__all__ = ["AuditLog"]
