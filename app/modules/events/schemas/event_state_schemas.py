# -*- coding: utf-8 -*-
"""
backend/app/modules/events/schemas/event_state_schemas.py

Vista de solo lectura del estado de un evento (dashboards / reportes).

Autor: Jemputan
Fecha: 2026-02-06
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.modules.events.enums import LifecycleState, PaymentState
from .archived_summary_schemas import ArchivedSummaryV1


class EventStateRead(BaseModel):
    id: int
    payment_state: PaymentState
    lifecycle_state: LifecycleState
    event_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    cooldown_until: Optional[datetime] = None
    disabled_at: Optional[datetime] = None
    archived_summary: Optional[ArchivedSummaryV1] = Field(
        None, description="Presente solo cuando el evento fue archivado"
    )

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 42,
                "payment_state": "PAID",
                "lifecycle_state": "DISABLED",
                "event_date": "2025-01-01",
                "start_time": "09:00:00",
                "end_time": "17:00:00",
                "cooldown_until": "2025-01-15T17:00:00Z",
                "disabled_at": "2025-01-16T00:00:00Z",
                "archived_summary": {
                    "schema_version": 1,
                    "total_guests": 120,
                    "total_pax": 310,
                    "rsvp_counts": {"yes": 90, "no": 20, "maybe": 10},
                    "checkins": 85,
                    "messages": 40,
                    "views": 1500,
                    "archived_at": "2025-01-16T00:00:00Z",
                },
            }
        },
    )


__all__ = ["EventStateRead"]
