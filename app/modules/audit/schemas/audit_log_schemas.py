# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/schemas/audit_log_schemas.py

Schemas Pydantic de respuesta para consultas del ledger.

Autor: Jemputan
Fecha: 2026-02-04
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogRead(BaseModel):
    """Mapea 1:1 con el modelo AuditLog."""
    id: int
    event_id: Optional[int] = None
    user_id: Optional[int] = None
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
    items: List[AuditLogRead]
    count: int
