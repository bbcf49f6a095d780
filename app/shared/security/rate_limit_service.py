# -*- coding: utf-8 -*-
"""
backend/app/shared/security/rate_limit_service.py

Abuse-aware fixed-window rate limiter.

Each request is checked against several independent keys (client IP,
event id, normalized phone), each with its own (max_requests, window_ms)
policy. The request is allowed only if every applicable key is under its
limit.

Window semantics (fixed, not sliding):
- A key starts its window on first use.
- The window resets once `now - window_start > window_ms`.
- A denied request does not consume from that key.

Counter state lives behind CounterStore:
- InMemoryCounterStore: process-local, guarded by a threading.Lock.
  Only correct if all traffic for a key reaches one process.
- RedisCounterStore: shared state; increment-and-check runs as one Lua
  script so it is atomic across processes.

Key naming convention:
- rl:rsvp:ip:{ip}
- rl:rsvp:event:{event_id}
- rl:rsvp:phone:{normalized_phone} (raw stripped value when it does not normalize)

Author: Jemputan
Updated: 2026-02-06
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import redis

from app.shared.config import settings
from app.shared.utils.validators import normalize_phone
from app.observability.job_metrics import RATE_LIMIT_DENIED

logger = logging.getLogger(__name__)

# Checked in this order; the first denial is the one reported
KEY_TYPES: Tuple[str, ...] = ("ip", "event", "phone")


@dataclass
class RateLimitResult:
    """Result of checking a single key."""
    key_type: str
    allowed: bool
    remaining: int
    retry_after: int  # seconds until the window resets
    current_count: int
    limit: int


@dataclass
class RateLimitDecision:
    """Combined outcome over every applicable key."""
    allowed: bool
    results: List[RateLimitResult] = field(default_factory=list)

    @property
    def limited_by(self) -> Optional[str]:
        for r in self.results:
            if not r.allowed:
                return r.key_type
        return None

    @property
    def retry_after(self) -> int:
        for r in self.results:
            if not r.allowed:
                return r.retry_after
        return 0


class CounterStore:
    """
    Atomic fixed-window counter.

    hit() must perform, atomically per key:
        if no window or now - start > window_ms: start = now, count = 1 -> allowed
        elif count >= limit:                                             -> denied
        else: count += 1                                                 -> allowed
    and return (allowed, count, window_start_ms).
    """

    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> Tuple[bool, int, int]:
        raise NotImplementedError

    def reset(self, key: str) -> None:
        raise NotImplementedError


@dataclass
class InMemoryRecord:
    """In-memory window record."""
    count: int
    window_start_ms: int
    window_ms: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.window_start_ms > self.window_ms


class InMemoryCounterStore(CounterStore):
    """Process-local counters. Volatile: lost on restart."""

    CLEANUP_THRESHOLD = 10000

    def __init__(self):
        self._records: Dict[str, InMemoryRecord] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> Tuple[bool, int, int]:
        with self._lock:
            if len(self._records) > self.CLEANUP_THRESHOLD:
                self._cleanup_expired(now_ms)

            record = self._records.get(key)
            if record is None or record.is_expired(now_ms):
                record = InMemoryRecord(count=1, window_start_ms=now_ms, window_ms=window_ms)
                self._records[key] = record
                return True, 1, now_ms

            if record.count >= limit:
                return False, record.count, record.window_start_ms

            record.count += 1
            return True, record.count, record.window_start_ms

    def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def _cleanup_expired(self, now_ms: int) -> None:
        """Remove expired records (called with lock held)."""
        expired_keys = [k for k, v in self._records.items() if v.is_expired(now_ms)]
        for k in expired_keys:
            del self._records[k]
        if expired_keys:
            logger.debug("Rate limiter cleaned up %d expired records", len(expired_keys))

    def __len__(self) -> int:
        return len(self._records)


# KEYS[1] = counter hash; ARGV = now_ms, window_ms, limit
_HIT_SCRIPT = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local start = tonumber(redis.call('HGET', KEYS[1], 'start'))
local count = tonumber(redis.call('HGET', KEYS[1], 'count'))
if (not start) or (now - start > window) then
  redis.call('HSET', KEYS[1], 'start', now, 'count', 1)
  redis.call('PEXPIRE', KEYS[1], window + 1000)
  return {1, 1, now}
end
if count >= limit then
  return {0, count, start}
end
count = redis.call('HINCRBY', KEYS[1], 'count', 1)
return {1, count, start}
"""


class RedisCounterStore(CounterStore):
    """
    Shared counters in Redis.

    Fails open: if Redis errors, the request is allowed and the error logged,
    so an outage of the counter store never blocks guests.
    """

    def __init__(self, client: "redis.Redis"):
        self._client = client
        self._script = client.register_script(_HIT_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client)

    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> Tuple[bool, int, int]:
        try:
            allowed, count, start = self._script(keys=[key], args=[now_ms, window_ms, limit])
        except redis.RedisError as e:
            logger.error("Redis rate limit check failed, falling back to allow: %s", e)
            return True, 0, now_ms
        return bool(int(allowed)), int(count), int(start)

    def reset(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as e:
            logger.error("Failed to reset Redis key %s: %s", key, e)


class RateLimitService:
    """
    Multi-key fixed-window limiter.

    Usage:
        limiter = get_rate_limiter()
        decision = limiter.check(ip="1.2.3.4", event_id=10, phone="012-345 6789")
        if not decision.allowed:
            ...  # 429 with decision.retry_after
    """

    _instance: Optional["RateLimitService"] = None
    _lock = threading.Lock()

    def __init__(
        self,
        store: CounterStore,
        policies: Dict[str, Tuple[int, int]],
        action: str = "rsvp",
        enabled: bool = True,
    ):
        """
        Args:
            store: Counter backend
            policies: {key_type: (max_requests, window_ms)}
            action: Prefix for key names (e.g. "rsvp")
            enabled: If False, every check is allowed without touching counters
        """
        self.store = store
        self.policies = dict(policies)
        self.action = action
        self.enabled = enabled

    @classmethod
    def get_instance(cls) -> "RateLimitService":
        """Get singleton instance configured from settings."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls.from_settings()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton (for testing)."""
        with cls._lock:
            cls._instance = None

    @classmethod
    def from_settings(cls) -> "RateLimitService":
        if settings.rate_limit_backend == "redis":
            store: CounterStore = RedisCounterStore.from_url(settings.redis_url)
            logger.info("RateLimitService: using Redis counter store")
        else:
            store = InMemoryCounterStore()
            logger.info("RateLimitService: using in-memory counter store")
        return cls(
            store=store,
            policies=settings.rate_limit_policies(),
            enabled=settings.rate_limit_enabled,
        )

    def _build_key(self, key_type: str, identifier: str) -> str:
        return f"rl:{self.action}:{key_type}:{identifier}"

    @staticmethod
    def _phone_identifier(phone: Optional[str]) -> Optional[str]:
        # Unparseable input still gets its own bucket
        if not phone or not phone.strip():
            return None
        return normalize_phone(phone) or phone.strip()

    def check_key(
        self,
        key_type: str,
        identifier: str,
        now_ms: Optional[int] = None,
    ) -> RateLimitResult:
        """Check and consume one request for a single key."""
        limit, window_ms = self.policies[key_type]
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms

        allowed, count, window_start_ms = self.store.hit(
            self._build_key(key_type, identifier), limit, window_ms, now_ms
        )

        retry_after = 0
        if not allowed:
            retry_after = max(0, math.ceil((window_start_ms + window_ms - now_ms) / 1000))

        return RateLimitResult(
            key_type=key_type,
            allowed=allowed,
            remaining=max(0, limit - count),
            retry_after=retry_after,
            current_count=count,
            limit=limit,
        )

    def check(
        self,
        *,
        ip: Optional[str] = None,
        event_id: Optional[int | str] = None,
        phone: Optional[str] = None,
        now_ms: Optional[int] = None,
    ) -> RateLimitDecision:
        """
        Check every applicable key. Keys whose identifier is missing are skipped.

        Every applicable key is evaluated (not short-circuited), so a burst
        spread across IPs still consumes the per-event and per-phone budget.
        """
        if not self.enabled:
            return RateLimitDecision(allowed=True)

        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        identifiers = {
            "ip": ip,
            "event": str(event_id) if event_id is not None else None,
            "phone": self._phone_identifier(phone),
        }

        results = []
        for key_type in KEY_TYPES:
            identifier = identifiers[key_type]
            if not identifier or key_type not in self.policies:
                continue
            result = self.check_key(key_type, identifier, now_ms=now_ms)
            if not result.allowed:
                RATE_LIMIT_DENIED.labels(key_type).inc()
                logger.warning(
                    "[rate_limit] exceeded: key_type=%s count=%d limit=%d retry_after=%ds",
                    key_type,
                    result.current_count,
                    result.limit,
                    result.retry_after,
                )
            results.append(result)

        return RateLimitDecision(
            allowed=all(r.allowed for r in results),
            results=results,
        )


# Convenience function
def get_rate_limiter() -> RateLimitService:
    """Get the singleton rate limit service."""
    return RateLimitService.get_instance()


__all__ = [
    "KEY_TYPES",
    "RateLimitResult",
    "RateLimitDecision",
    "CounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "RateLimitService",
    "get_rate_limiter",
]
