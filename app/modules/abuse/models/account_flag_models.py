# -*- coding: utf-8 -*-
"""
backend/app/modules/abuse/models/account_flag_models.py

Modelo ORM para la tabla account_flags (una fila por usuario).

- expired_payment_count / total_payment_attempts: solo crecen.
- is_flagged: se escribe una vez (0 -> 1) y nunca vuelve a 0 desde aquí.
- events_created_last_hour / is_rate_limited: ventana horaria de
  checkouts; el job de expiración los pone en 0 cuando
  last_event_created_at tiene más de una hora.

La fila se crea perezosamente (upsert) en la primera expiración,
verificación o checkout del usuario.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK


class AccountFlag(Base):
    __tablename__ = "account_flags"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    expired_payment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_payment_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    events_created_last_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_rate_limited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_event_created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def expire_ratio(self) -> float:
        if not self.total_payment_attempts:
            return 0.0
        return self.expired_payment_count / self.total_payment_attempts

    def __repr__(self) -> str:
        return (
            f"<AccountFlag user_id={self.user_id} expired={self.expired_payment_count} "
            f"attempts={self.total_payment_attempts} flagged={self.is_flagged}>"
        )


__all__ = ["AccountFlag"]
