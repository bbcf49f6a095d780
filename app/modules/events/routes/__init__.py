# -*- coding: utf-8 -*-
"""
backend/app/modules/events/routes/__init__.py
"""

from .event_state_routes import router

__all__ = ["router"]
