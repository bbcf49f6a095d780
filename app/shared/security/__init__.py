# -*- coding: utf-8 -*-
"""
backend/app/shared/security/__init__.py

Rate limiting for Jemputan guest-facing endpoints.
"""

from .rate_limit_service import (
    RateLimitService,
    RateLimitResult,
    RateLimitDecision,
    CounterStore,
    InMemoryCounterStore,
    RedisCounterStore,
    get_rate_limiter,
)
from .rate_limit_dep import GuestRateLimitDep, RateLimitExceeded, rate_limit_response

__all__ = [
    "RateLimitService",
    "RateLimitResult",
    "RateLimitDecision",
    "CounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "get_rate_limiter",
    "GuestRateLimitDep",
    "RateLimitExceeded",
    "rate_limit_response",
]
