# -*- coding: utf-8 -*-
"""
Tests de contadores de abuso (account_flags) y freno de checkouts.
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.modules.abuse.models import AccountFlag
from app.modules.abuse.services import (
    check_user_can_create_event,
    evaluate_abuse_thresholds,
    record_checkout_activity,
    record_expired_payment,
    record_payment_attempt,
    reset_hourly_counters,
    should_flag,
)
from app.modules.audit.models import AuditLog

from tests.conftest import utc

NOW = utc(2025, 1, 1, 12, 0)


async def _flag(db, user_id):
    return (
        await db.execute(
            select(AccountFlag)
            .where(AccountFlag.user_id == user_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()


@pytest.mark.parametrize(
    "expired,attempts,expected",
    [
        (0, 0, False),
        (2, 2, False),
        (3, 3, True),      # umbral absoluto
        (3, 100, True),
        (2, 4, False),     # ratio alto pero pocos intentos
        (3, 5, True),      # 0.6 > 0.5
        (2, 5, False),     # 0.4
    ],
)
def test_should_flag(expired, attempts, expected):
    assert should_flag(expired, attempts) is expected


def test_should_flag_ratio_rule_with_custom_threshold():
    # Sin umbral absoluto alcanzable, solo decide la proporción
    assert should_flag(5, 10, expired_threshold=100) is False
    assert should_flag(6, 10, expired_threshold=100) is True


@pytest.mark.asyncio
async def test_counters_create_the_row_lazily(db):
    assert await _flag(db, 3) is None

    await record_expired_payment(db, 3, NOW)
    await record_payment_attempt(db, 3, NOW)
    await record_expired_payment(db, 3, NOW)
    await db.commit()

    flag = await _flag(db, 3)
    assert flag.expired_payment_count == 2
    assert flag.total_payment_attempts == 3
    assert flag.is_flagged is False
    assert await db.scalar(select(func.count()).select_from(AccountFlag)) == 1


@pytest.mark.asyncio
async def test_checkout_window_counts_and_restarts(db):
    await record_checkout_activity(db, 4, NOW)
    await record_checkout_activity(db, 4, NOW + timedelta(minutes=30))
    await db.commit()
    assert (await _flag(db, 4)).events_created_last_hour == 2

    await record_checkout_activity(db, 4, NOW + timedelta(minutes=100))
    await db.commit()
    assert (await _flag(db, 4)).events_created_last_hour == 1


@pytest.mark.asyncio
async def test_flagging_happens_once(db):
    db.add(AccountFlag(user_id=9, expired_payment_count=3, total_payment_attempts=4))
    await db.commit()

    first = await evaluate_abuse_thresholds(db, [9], NOW)
    await db.commit()
    second = await evaluate_abuse_thresholds(db, [9], NOW + timedelta(minutes=5))
    await db.commit()

    assert first == [9]
    assert second == []
    assert (await _flag(db, 9)).is_flagged is True

    audit = (await db.execute(select(AuditLog).where(AuditLog.action == "USER_FLAGGED"))).scalar_one()
    assert audit.user_id == 9
    assert audit.details["expire_ratio"] == 0.75


@pytest.mark.asyncio
async def test_users_below_threshold_are_not_flagged(db):
    db.add(AccountFlag(user_id=10, expired_payment_count=1, total_payment_attempts=6))
    await db.commit()

    assert await evaluate_abuse_thresholds(db, [10, 11], NOW) == []


@pytest.mark.asyncio
async def test_reset_skips_rows_already_at_zero(db):
    db.add(AccountFlag(user_id=12, last_event_created_at=NOW - timedelta(hours=3)))
    await db.commit()

    assert await reset_hourly_counters(db, NOW) == 0


# ---------------------------------------------------------------------------
# Freno de checkouts
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_unknown_user_can_create(db):
    assert (await check_user_can_create_event(db, 77, NOW)).blocked is False


@pytest.mark.asyncio
async def test_too_many_checkouts_in_the_hour_blocks_and_marks(db):
    db.add(
        AccountFlag(
            user_id=13,
            events_created_last_hour=10,
            last_event_created_at=NOW - timedelta(minutes=20),
        )
    )
    await db.commit()

    check = await check_user_can_create_event(db, 13, NOW)

    assert check.blocked is True
    assert check.code == "RATE_LIMIT_EXCEEDED"
    assert (await _flag(db, 13)).is_rate_limited is True

    again = await check_user_can_create_event(db, 13, NOW)
    assert again.code == "RATE_LIMITED"


@pytest.mark.asyncio
async def test_old_window_does_not_block(db):
    db.add(
        AccountFlag(
            user_id=14,
            events_created_last_hour=10,
            last_event_created_at=NOW - timedelta(hours=2),
        )
    )
    await db.commit()

    assert (await check_user_can_create_event(db, 14, NOW)).blocked is False


@pytest.mark.asyncio
async def test_hourly_reset_lifts_the_block(db):
    db.add(
        AccountFlag(
            user_id=15,
            events_created_last_hour=10,
            is_rate_limited=True,
            last_event_created_at=NOW - timedelta(minutes=61),
        )
    )
    await db.commit()

    assert await reset_hourly_counters(db, NOW) == 1
    await db.commit()

    assert (await check_user_can_create_event(db, 15, NOW)).blocked is False
