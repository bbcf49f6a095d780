# -*- coding: utf-8 -*-
"""
backend/app/modules/audit/routes/audit_routes.py

Consulta de solo lectura del ledger (dashboards / reportes).

GET /audit?event_id=...&action=...&limit=...

Autor: Jemputan
Fecha: 2026-02-05
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database import get_async_session
from app.modules.audit.enums import AuditAction
from app.modules.audit.schemas import AuditLogListResponse, AuditLogRead
from app.modules.audit.services import AuditLedger

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_records(
    event_id: Optional[int] = Query(None, ge=1),
    action: Optional[str] = Query(None, description="AuditAction, p. ej. PAYMENT_EXPIRED"),
    limit: int = Query(AuditLedger.DEFAULT_LIMIT, ge=1, le=AuditLedger.MAX_LIMIT),
    db: AsyncSession = Depends(get_async_session),
) -> AuditLogListResponse:
    if event_id is None and action is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Se requiere event_id o action",
        )
    if action is not None and action not in AuditAction.__members__:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Acción desconocida: {action}",
        )

    records = await AuditLedger(db).query(event_id=event_id, action=action, limit=limit)
    items = [AuditLogRead.model_validate(r) for r in records]
    return AuditLogListResponse(items=items, count=len(items))
