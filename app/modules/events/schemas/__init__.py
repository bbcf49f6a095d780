# -*- coding: utf-8 -*-
"""
backend/app/modules/events/schemas/__init__.py
"""

from .archived_summary_schemas import (
    RsvpCounts,
    ArchivedSummaryV1,
    SUMMARY_SCHEMAS,
    CURRENT_SCHEMA_VERSION,
    parse_archived_summary,
)
from .event_state_schemas import EventStateRead

__all__ = [
    "RsvpCounts",
    "ArchivedSummaryV1",
    "SUMMARY_SCHEMAS",
    "CURRENT_SCHEMA_VERSION",
    "parse_archived_summary",
    "EventStateRead",
]
