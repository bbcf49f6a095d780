# -*- coding: utf-8 -*-
"""
backend/app/modules/events/schemas/archived_summary_schemas.py

Esquemas versionados del resumen de archivado (events.archived_summary y
el payload del audit EVENT_DISABLED).

Cada versión es una variante etiquetada por `schema_version`; los blobs
históricos se leen con parse_archived_summary(), que elige la variante
por esa etiqueta. Una versión nueva se agrega como ArchivedSummaryV2 y
se registra en SUMMARY_SCHEMAS, sin reescribir registros viejos.

Autor: Jemputan
Fecha: 2026-02-05
"""

from datetime import datetime
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field


class RsvpCounts(BaseModel):
    """Conteo de RSVPs por respuesta."""
    yes: int = 0
    no: int = 0
    maybe: int = 0

    model_config = ConfigDict(extra="forbid")


class ArchivedSummaryV1(BaseModel):
    """Estadísticas finales de un evento al pasar a DISABLED."""
    schema_version: Literal[1] = 1

    total_guests: int = Field(..., ge=0, description="Invitados registrados")
    total_pax: int = Field(..., ge=0, description="Suma del tamaño de grupo (pax)")
    rsvp_counts: RsvpCounts = Field(default_factory=RsvpCounts)
    checkins: int = Field(..., ge=0, description="Registros de asistencia")
    messages: int = Field(..., ge=0, description="Mensajes de invitados")
    views: int = Field(0, ge=0, description="Vistas de la invitación pública")
    archived_at: datetime

    model_config = ConfigDict(extra="forbid")


# Variantes por etiqueta; la versión nueva se registra aquí
SUMMARY_SCHEMAS: dict[int, type[BaseModel]] = {
    1: ArchivedSummaryV1,
}

CURRENT_SCHEMA_VERSION = 1


def parse_archived_summary(raw: Mapping[str, Any]) -> BaseModel:
    """
    Interpreta un blob persistido según su schema_version.

    Blobs sin etiqueta se leen como versión 1 (la primera que existió).

    Raises:
        ValueError: si la versión es desconocida
        pydantic.ValidationError: si el blob no valida contra su versión
    """
    version = raw.get("schema_version", 1)
    schema = SUMMARY_SCHEMAS.get(version)
    if schema is None:
        raise ValueError(f"schema_version desconocida en archived_summary: {version!r}")
    return schema.model_validate(dict(raw))


__all__ = [
    "RsvpCounts",
    "ArchivedSummaryV1",
    "SUMMARY_SCHEMAS",
    "CURRENT_SCHEMA_VERSION",
    "parse_archived_summary",
]
