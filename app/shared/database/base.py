# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- JSONType: JSON portable (JSONB en PostgreSQL, JSON en SQLite para tests)
- BigIntPK: tipo de PK entera autoincremental portable
- as_str_enum: helper para mapear enums Python a VARCHAR con CHECK

Autor: Jemputan
Fecha: 2026-02-03
"""

from __future__ import annotations

from enum import Enum
from typing import Type

from sqlalchemy import JSON, BigInteger, Integer, MetaData
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM de Jemputan.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# Blobs estructurados (archived_summary, audit details)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# BIGINT en PostgreSQL; INTEGER en SQLite para que autoincrement funcione
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


# ===== HELPER GENÉRICO PARA ENUMS =====
def as_str_enum(enum_cls: Type[Enum], name: str | None = None) -> SAEnum:
    """
    Devuelve un tipo Enum de SQLAlchemy almacenado como VARCHAR + CHECK.

    Uso típico:

        from app.shared.database.base import Base, as_str_enum
        from .enums import LifecycleState

        class Event(Base):
            lifecycle_state: Mapped[LifecycleState] = mapped_column(
                as_str_enum(LifecycleState, name="lifecycle_state_enum"),
                nullable=False,
            )

    - Persiste el .value del enum (no el nombre del miembro).
    - No crea tipos nativos: el mismo esquema funciona en PostgreSQL y SQLite.
    """
    enum_name = name or enum_cls.__name__.lower()

    def _values(members: Type[Enum]) -> list[str]:
        return [e.value for e in members]

    return SAEnum(
        enum_cls,
        name=enum_name,
        native_enum=False,
        create_constraint=True,
        length=16,
        values_callable=_values,
        validate_strings=True,
    )


__all__ = ["Base", "NAMING_CONVENTION", "JSONType", "BigIntPK", "as_str_enum"]

# Fin del archivo backend/app/shared/database/base.py
