# -*- coding: utf-8 -*-
"""
backend/app/shared/http_utils/request_meta.py

Extracción segura de la IP del cliente detrás de proxies (Cloudflare,
nginx, etc.). Es la llave "ip" del rate limiter de invitados.

Autor: Jemputan
Fecha: 2026-02-06
"""
from __future__ import annotations

from starlette.requests import Request

from app.shared.config import settings

# Orden de preferencia cuando se confía en headers de proxy
_PROXY_HEADERS = ("cf-connecting-ip", "x-forwarded-for", "x-real-ip")


def get_client_ip(request: Request) -> str:
    """
    Extrae la IP real del cliente.

    Si TRUST_PROXY_HEADERS=true:
        1. CF-Connecting-IP (Cloudflare)
        2. X-Forwarded-For (primer IP, cliente original)
        3. X-Real-IP (patrón nginx)
        4. request.client.host (fallback)

    Si TRUST_PROXY_HEADERS=false (default):
        Solo usa request.client.host; un cliente podría falsificar los
        headers y rotar su llave de rate limiting.

    Returns:
        IP del cliente como string, o "unknown" si no se puede determinar
    """
    if settings.trust_proxy_headers:
        for header in _PROXY_HEADERS:
            value = request.headers.get(header)
            if value:
                # X-Forwarded-For: "client, proxy1, proxy2"
                return value.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


__all__ = ["get_client_ip"]
