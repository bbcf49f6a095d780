# -*- coding: utf-8 -*-
"""
Tests for the multi-key fixed-window rate limiter.

Coverage:
- Window starts on first use and resets only after window_ms has passed
- Denied requests do not consume
- Every key is evaluated; the first denial (ip, event, phone) is reported
- Phone numbers in different formats share one key; junk phones are keyed raw
- Concurrent callers on one key: exactly `limit` allowed
- Redis store: atomic script result, fail-open on errors
- GuestRateLimitDep: 429 with Retry-After
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
import redis
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from app.shared.security.rate_limit_dep import GuestRateLimitDep, RateLimitExceeded, rate_limit_response
from app.shared.security.rate_limit_service import (
    InMemoryCounterStore,
    RateLimitDecision,
    RateLimitService,
    RedisCounterStore,
)

T0 = 1_700_000_000_000

POLICIES = {
    "ip": (5, 60_000),
    "event": (50, 60_000),
    "phone": (3, 300_000),
}


@pytest.fixture
def limiter():
    return RateLimitService(store=InMemoryCounterStore(), policies=POLICIES)


def _burst(limiter, n, **kwargs):
    return [limiter.check(**kwargs) for _ in range(n)]


class TestFixedWindow:
    def test_sixth_request_from_same_ip_is_denied(self, limiter):
        decisions = _burst(limiter, 6, ip="1.2.3.4", now_ms=T0 + 10_000)

        assert [d.allowed for d in decisions] == [True] * 5 + [False]
        denied = decisions[-1]
        assert denied.limited_by == "ip"
        # Window started at T0+10s, ends at T0+70s
        assert denied.retry_after == 60

    def test_window_resets_only_after_it_has_fully_elapsed(self, limiter):
        _burst(limiter, 5, ip="1.2.3.4", now_ms=T0)

        at_boundary = limiter.check(ip="1.2.3.4", now_ms=T0 + 60_000)
        after = limiter.check(ip="1.2.3.4", now_ms=T0 + 60_001)

        assert at_boundary.allowed is False
        assert after.allowed is True
        assert after.results[0].current_count == 1

    def test_retry_after_rounds_up(self, limiter):
        _burst(limiter, 5, ip="1.2.3.4", now_ms=T0)

        denied = limiter.check(ip="1.2.3.4", now_ms=T0 + 59_500)

        assert denied.retry_after == 1

    def test_denied_requests_do_not_consume(self, limiter):
        _burst(limiter, 5, ip="1.2.3.4", now_ms=T0)
        _burst(limiter, 10, ip="1.2.3.4", now_ms=T0 + 1_000)

        result = limiter.check_key("ip", "1.2.3.4", now_ms=T0 + 2_000)

        assert result.current_count == 5
        assert result.remaining == 0

    def test_concurrent_callers_on_one_key_never_exceed_limit(self):
        store = InMemoryCounterStore()
        limit = 5
        with ThreadPoolExecutor(max_workers=16) as pool:
            outcomes = list(
                pool.map(lambda _: store.hit("rl:rsvp:ip:1.2.3.4", limit, 60_000, T0), range(limit * 20))
            )

        assert sum(1 for allowed, _, _ in outcomes if allowed) == limit
        assert store.hit("rl:rsvp:ip:1.2.3.4", limit, 60_000, T0) == (False, limit, T0)

    def test_concurrent_checks_through_the_service(self, limiter):
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(
                pool.map(lambda _: limiter.check_key("phone", "60123456789", now_ms=T0), range(30))
            )

        assert sum(r.allowed for r in results) == 3
        assert limiter.check_key("phone", "60123456789", now_ms=T0).current_count == 3


class TestMultiKey:
    def test_phone_limit_with_rotating_ips(self, limiter):
        decisions = [
            limiter.check(ip=f"10.0.0.{i}", event_id=7, phone="012-345 6789", now_ms=T0)
            for i in range(4)
        ]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert decisions[-1].limited_by == "phone"
        assert decisions[-1].retry_after == 300

    def test_phone_formats_share_one_key(self, limiter):
        for phone in ("012-345 6789", "+60 12 345 6789", "60123456789"):
            assert limiter.check(phone=phone, now_ms=T0).allowed is True

        assert limiter.check(phone="0123456789", now_ms=T0).allowed is False

    def test_all_keys_are_evaluated_even_after_a_denial(self, limiter):
        _burst(limiter, 5, ip="1.2.3.4", now_ms=T0)

        denied = limiter.check(ip="1.2.3.4", event_id=7, now_ms=T0)

        assert denied.allowed is False
        assert [r.key_type for r in denied.results] == ["ip", "event"]
        assert denied.results[1].allowed is True
        assert limiter.check_key("event", "7", now_ms=T0).current_count == 2

    def test_first_denial_in_key_order_is_reported(self):
        limiter = RateLimitService(
            store=InMemoryCounterStore(),
            policies={"ip": (1, 60_000), "event": (1, 60_000), "phone": (1, 60_000)},
        )
        limiter.check(ip="1.1.1.1", event_id=1, phone="0123456789", now_ms=T0)

        denied = limiter.check(ip="1.1.1.1", event_id=1, phone="0123456789", now_ms=T0)

        assert [r.allowed for r in denied.results] == [False, False, False]
        assert denied.limited_by == "ip"

    def test_missing_identifiers_are_skipped(self, limiter):
        decision = limiter.check(ip=None, event_id=None, phone="   ", now_ms=T0)

        assert decision.allowed is True
        assert decision.results == []

    def test_unparseable_phone_is_limited_on_its_raw_value(self, limiter):
        decisions = _burst(limiter, 4, phone=" not a phone ", now_ms=T0)

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert decisions[-1].limited_by == "phone"
        assert limiter.check_key("phone", "not a phone", now_ms=T0).allowed is False
        # A different junk value has its own quota
        assert limiter.check(phone="junk-2", now_ms=T0).allowed is True

    def test_disabled_limiter_allows_everything(self):
        limiter = RateLimitService(store=InMemoryCounterStore(), policies=POLICIES, enabled=False)

        decisions = _burst(limiter, 20, ip="1.2.3.4", now_ms=T0)

        assert all(d.allowed for d in decisions)


class TestRedisStore:
    def _store(self, script):
        client = MagicMock()
        client.register_script.return_value = script
        return RedisCounterStore(client)

    def test_script_result_is_used(self):
        script = MagicMock(return_value=[0, 5, T0])
        limiter = RateLimitService(store=self._store(script), policies=POLICIES)

        decision = limiter.check(ip="1.2.3.4", now_ms=T0 + 30_000)

        assert decision.allowed is False
        assert decision.retry_after == 30
        script.assert_called_once_with(keys=["rl:rsvp:ip:1.2.3.4"], args=[T0 + 30_000, 60_000, 5])

    def test_redis_errors_fail_open(self):
        script = MagicMock(side_effect=redis.ConnectionError("redis down"))
        limiter = RateLimitService(store=self._store(script), policies=POLICIES)

        decision = limiter.check(ip="1.2.3.4", event_id=7, now_ms=T0)

        assert decision.allowed is True


class TestSingleton:
    def test_instance_comes_from_settings(self):
        instance = RateLimitService.get_instance()

        assert instance is RateLimitService.get_instance()
        assert isinstance(instance.store, InMemoryCounterStore)
        assert instance.policies == POLICIES


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------
@pytest.fixture
def guest_app():
    RateLimitService._instance = RateLimitService(
        store=InMemoryCounterStore(),
        policies={"ip": (2, 60_000), "event": (50, 60_000), "phone": (3, 300_000)},
    )

    app = FastAPI()

    @app.exception_handler(RateLimitExceeded)
    async def _handler(request, exc: RateLimitExceeded):
        return rate_limit_response(exc.retry_after, exc.limited_by)

    @app.post("/events/{event_id}/rsvp")
    async def rsvp(event_id: int, decision: RateLimitDecision = Depends(GuestRateLimitDep())):
        return {"ok": True, "keys": [r.key_type for r in decision.results]}

    return app


@pytest.mark.asyncio
async def test_dependency_returns_429_with_retry_after(guest_app):
    transport = ASGITransport(app=guest_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        ok = await client.post("/events/7/rsvp", json={"phone": "012-345 6789"})
        await client.post("/events/7/rsvp", json={"phone": "012-345 6789"})
        denied = await client.post("/events/7/rsvp", json={"phone": "012-345 6789"})

    assert ok.status_code == 200
    assert ok.json()["keys"] == ["ip", "event", "phone"]
    assert denied.status_code == 429
    assert denied.headers["Retry-After"] == str(denied.json()["retry_after"])
    assert denied.json()["limited_by"] == "ip"
    assert denied.json()["error_code"] == "rate_limit_exceeded"
