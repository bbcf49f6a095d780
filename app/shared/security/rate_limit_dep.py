# -*- coding: utf-8 -*-
"""
backend/app/shared/security/rate_limit_dep.py

FastAPI dependencies for rate limiting spam-prone guest endpoints
(RSVP, guest messages).

Author: Jemputan
Updated: 2026-02-06
"""
# Note: NOT using 'from __future__ import annotations' to ensure FastAPI
# can properly resolve Request type annotation for dependency injection

import json
import logging
from typing import Optional

from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse

from app.shared.security.rate_limit_service import get_rate_limiter, RateLimitDecision
from app.shared.http_utils.request_meta import get_client_ip

logger = logging.getLogger(__name__)

_DEFAULT_DETAIL = "Demasiadas solicitudes. Intente de nuevo más tarde."


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, retry_after: int, limited_by: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail or _DEFAULT_DETAIL,
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after
        self.limited_by = limited_by


def rate_limit_response(retry_after: int, limited_by: Optional[str] = None) -> JSONResponse:
    """Create a standardized 429 response with explicit UTF-8 charset."""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": _DEFAULT_DETAIL,
            "retry_after": retry_after,
            "limited_by": limited_by,
            "error_code": "rate_limit_exceeded",
        },
        headers={"Retry-After": str(retry_after)},
        media_type="application/json; charset=utf-8",
    )


class GuestRateLimitDep:
    """
    FastAPI dependency applying the IP + event + phone limits.

    Usage:
        @router.post("/events/{event_id}/rsvp")
        async def submit_rsvp(
            event_id: int,
            decision: RateLimitDecision = Depends(GuestRateLimitDep()),
        ):
            ...

    The event id is read from the path parameter (or query string), the
    phone from the JSON body field `phone_field`.
    """

    def __init__(self, event_param: str = "event_id", phone_field: Optional[str] = "phone"):
        self.event_param = event_param
        self.phone_field = phone_field

    async def __call__(self, request: Request) -> RateLimitDecision:
        limiter = get_rate_limiter()

        decision = limiter.check(
            ip=get_client_ip(request),
            event_id=self._extract_event_id(request),
            phone=await self._extract_phone(request),
        )

        if not decision.allowed:
            raise RateLimitExceeded(
                retry_after=decision.retry_after,
                limited_by=decision.limited_by,
                detail=(
                    f"Demasiadas solicitudes (límite: {decision.limited_by}). "
                    f"Intente de nuevo en {decision.retry_after} segundos."
                ),
            )
        return decision

    def _extract_event_id(self, request: Request) -> Optional[str]:
        value = request.path_params.get(self.event_param) or request.query_params.get(self.event_param)
        return str(value) if value else None

    async def _extract_phone(self, request: Request) -> Optional[str]:
        if not self.phone_field:
            return None
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.debug("Rate limit phone extraction failed: %s", type(e).__name__)
            return None
        if not isinstance(body, dict):
            return None
        phone = body.get(self.phone_field)
        return phone if isinstance(phone, str) and phone.strip() else None


__all__ = [
    "GuestRateLimitDep",
    "RateLimitExceeded",
    "rate_limit_response",
]
