# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_order_models.py

Modelo ORM para la tabla payment_orders.

Autor: Jemputan
Fecha: 2026-02-05
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_str_enum
from app.modules.payments.enums import PaymentOrderStatus


class PaymentOrder(Base):
    """
    Orden de pago de un checkout.

    expires_at se fija al crear (created_at + ventana) y nunca cambia.
    La orden termina por verificación (éxito), por el job de expiración
    o por rechazo de la pasarela.
    """

    __tablename__ = "payment_orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    event_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("events.id"),
        nullable=True,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    order_ref: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        doc="Referencia pública (ORD-YYYYMMDD-XXXXXXXX).",
    )

    status: Mapped[PaymentOrderStatus] = mapped_column(
        as_str_enum(PaymentOrderStatus, name="payment_order_status_enum"),
        nullable=False,
        default=PaymentOrderStatus.PENDING,
    )

    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Monto en unidades menores (sen).",
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        # Predicado del barrido: status IN (pending, processing) AND expires_at < now
        Index("ix_payment_orders_status_expires", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<PaymentOrder ref={self.order_ref} status={self.status} event_id={self.event_id}>"


__all__ = ["PaymentOrder"]
