# -*- coding: utf-8 -*-
"""
backend/app/observability/__init__.py

Prometheus: middleware HTTP, /metrics y métricas de jobs.
"""
