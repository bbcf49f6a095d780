# -*- coding: utf-8 -*-
"""
Tests del job de expiración de órdenes de pago.

Escenarios:
- Orden vencida: expired, evento NO_PAID/DRAFT, audit, contadores
- Frontera estricta: expires_at == now no expira
- Verificación ganó la carrera: la orden expira pero el evento sigue PAID
- Tercer vencimiento del usuario: flag una sola vez
- Re-ejecución con el mismo "now": no-op
- Falla en una orden: rollback solo de esa orden
- Barrido abortado a la mitad: el usuario ya procesado queda marcado
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.modules.abuse.models import AccountFlag
from app.modules.audit.models import AuditLog
from app.modules.events.enums import LifecycleState, PaymentState
from app.modules.events.errors import TransientStoreError
from app.modules.events.models import Event
from app.modules.payments.enums import PaymentOrderStatus
from app.modules.payments.jobs import (
    EXPIRE_ORDERS_JOB_ID,
    build_expire_payment_orders_job,
    expire_payment_orders,
)
from app.modules.payments.models import PaymentOrder

from tests.conftest import utc

JOB_MODULE = "app.modules.payments.jobs.expire_payment_orders_job"

AFTER_WINDOW = utc(2025, 1, 1, 10, 16)


async def _flag(db, user_id):
    return (
        await db.execute(
            select(AccountFlag)
            .where(AccountFlag.user_id == user_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()


async def _count_audits(db, action):
    return await db.scalar(select(func.count()).select_from(AuditLog).where(AuditLog.action == action))


@pytest.fixture
async def pending_event(make_event):
    return await make_event(payment_state=PaymentState.PENDING, lifecycle_state=LifecycleState.DRAFT)


@pytest.mark.asyncio
async def test_lapsed_order_reverts_event_to_draft(db, pending_event, make_order, reload):
    order = await make_order(event_id=pending_event.id)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 1
    assert result.events_reverted == 1

    assert (await reload(PaymentOrder, order.id)).status == PaymentOrderStatus.EXPIRED
    event = await reload(Event, pending_event.id)
    assert event.payment_state == PaymentState.NO_PAID
    assert event.lifecycle_state == LifecycleState.DRAFT

    audit = (
        await db.execute(select(AuditLog).where(AuditLog.action == "PAYMENT_EXPIRED"))
    ).scalar_one()
    assert audit.event_id == pending_event.id
    assert audit.user_id == 1
    assert audit.details == {
        "order_ref": order.order_ref,
        "amount": 4900,
        "created_at": "2025-01-01T10:00:00+00:00",
        "expires_at": "2025-01-01T10:15:00+00:00",
    }

    flag = await _flag(db, 1)
    assert flag.expired_payment_count == 1
    assert flag.total_payment_attempts == 1
    assert flag.is_flagged is False


@pytest.mark.asyncio
async def test_expiry_boundary_is_strict(db, pending_event, make_order, reload):
    order = await make_order(event_id=pending_event.id)

    at_expiry = await expire_payment_orders(now=utc(2025, 1, 1, 10, 15), session=db)

    assert at_expiry.expired == 0
    assert (await reload(PaymentOrder, order.id)).status == PaymentOrderStatus.PENDING


@pytest.mark.asyncio
async def test_processing_orders_also_expire(db, pending_event, make_order, reload):
    order = await make_order(event_id=pending_event.id, status=PaymentOrderStatus.PROCESSING)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 1
    assert (await reload(PaymentOrder, order.id)).status == PaymentOrderStatus.EXPIRED


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [PaymentOrderStatus.VERIFIED, PaymentOrderStatus.FAILED])
async def test_terminal_orders_are_left_alone(db, make_event, make_order, reload, status):
    event = await make_event()
    order = await make_order(event_id=event.id, status=status)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 0
    assert (await reload(PaymentOrder, order.id)).status == status
    assert (await reload(Event, event.id)).payment_state == PaymentState.PAID


@pytest.mark.asyncio
async def test_verification_that_won_keeps_event_paid(db, make_event, make_order, reload):
    """
    La verificación marcó el evento PAID pero la orden quedó abierta y
    vencida: la orden expira y el evento no se revierte.
    """
    event = await make_event()  # PAID / SCHEDULED
    order = await make_order(event_id=event.id)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 1
    assert result.events_reverted == 0
    assert result.raced == 1
    assert (await reload(PaymentOrder, order.id)).status == PaymentOrderStatus.EXPIRED
    refreshed = await reload(Event, event.id)
    assert refreshed.payment_state == PaymentState.PAID
    assert refreshed.lifecycle_state == LifecycleState.SCHEDULED
    assert await _count_audits(db, "PAYMENT_STATE_CHANGE") == 0


@pytest.mark.asyncio
async def test_order_without_event_only_touches_order_and_counters(db, make_order, reload):
    order = await make_order(event_id=None, user_id=8)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 1
    assert result.events_reverted == 0
    assert (await reload(PaymentOrder, order.id)).status == PaymentOrderStatus.EXPIRED
    assert (await _flag(db, 8)).expired_payment_count == 1


@pytest.mark.asyncio
async def test_rerun_with_same_now_is_a_noop(db, pending_event, make_order):
    await make_order(event_id=pending_event.id)

    first = await expire_payment_orders(now=AFTER_WINDOW, session=db)
    second = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert first.expired == 1
    assert second.expired == 0
    assert second.skipped == []
    assert await _count_audits(db, "PAYMENT_EXPIRED") == 1
    assert (await _flag(db, 1)).expired_payment_count == 1


@pytest.mark.asyncio
async def test_third_expired_payment_flags_user_once(db, make_event, make_order):
    user_id = 42
    db.add(AccountFlag(user_id=user_id, expired_payment_count=2, total_payment_attempts=2))
    await db.commit()
    event = await make_event(
        user_id=user_id, payment_state=PaymentState.PENDING, lifecycle_state=LifecycleState.DRAFT
    )
    await make_order(event_id=event.id, user_id=user_id)

    result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.flagged_users == [user_id]
    flag = await _flag(db, user_id)
    assert flag.is_flagged is True
    assert flag.expired_payment_count == 3
    assert flag.total_payment_attempts == 3

    flagged_audit = (
        await db.execute(select(AuditLog).where(AuditLog.action == "USER_FLAGGED"))
    ).scalar_one()
    assert flagged_audit.user_id == user_id
    assert flagged_audit.details["expired_payment_count"] == 3

    # Otro vencimiento más tarde: contadores suben, sin segundo audit
    await make_order(
        event_id=None,
        user_id=user_id,
        created_at=utc(2025, 1, 1, 11, 0),
    )
    later = await expire_payment_orders(now=utc(2025, 1, 1, 11, 30), session=db)

    assert later.flagged_users == []
    assert (await _flag(db, user_id)).expired_payment_count == 4
    assert await _count_audits(db, "USER_FLAGGED") == 1


@pytest.mark.asyncio
async def test_stale_hourly_window_is_reset(db):
    now = utc(2025, 1, 1, 12, 0)
    db.add_all([
        AccountFlag(
            user_id=5,
            events_created_last_hour=4,
            is_rate_limited=True,
            last_event_created_at=now - timedelta(hours=2),
        ),
        AccountFlag(
            user_id=6,
            events_created_last_hour=2,
            last_event_created_at=now - timedelta(minutes=10),
        ),
    ])
    await db.commit()

    result = await expire_payment_orders(now=now, session=db)

    assert result.hourly_resets == 1
    stale = await _flag(db, 5)
    assert stale.events_created_last_hour == 0
    assert stale.is_rate_limited is False
    assert (await _flag(db, 6)).events_created_last_hour == 2


@pytest.mark.asyncio
async def test_failing_order_is_rolled_back_and_skipped(db, make_order, reload):
    good = await make_order(user_id=1)
    bad = await make_order(user_id=2)
    good_id, bad_id, bad_ref = good.id, bad.id, bad.order_ref

    from app.modules.abuse.services import record_expired_payment as real_record

    async def flaky_record(db, user_id, now=None):
        if user_id == 2:
            raise RuntimeError("counter write failed")
        await real_record(db, user_id, now)

    with patch(f"{JOB_MODULE}.record_expired_payment", new=flaky_record):
        result = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert result.expired == 1
    assert result.skipped == [bad_ref]
    assert (await reload(PaymentOrder, good_id)).status == PaymentOrderStatus.EXPIRED
    # Todo el trabajo de la orden fallida se deshizo, incluido su audit
    assert (await reload(PaymentOrder, bad_id)).status == PaymentOrderStatus.PENDING
    assert await _count_audits(db, "PAYMENT_EXPIRED") == 1

    retry = await expire_payment_orders(now=AFTER_WINDOW, session=db)
    assert retry.expired == 1
    assert (await reload(PaymentOrder, bad_id)).status == PaymentOrderStatus.EXPIRED


@pytest.mark.asyncio
async def test_flag_survives_sweep_aborted_by_store_outage(db, make_order, reload):
    db.add(AccountFlag(user_id=42, expired_payment_count=2, total_payment_attempts=2))
    await db.commit()
    first = await make_order(user_id=42)
    second = await make_order(user_id=7)
    first_id, second_id = first.id, second.id

    from app.modules.abuse.services import record_expired_payment as real_record

    async def outage_on_second(db, user_id, now=None):
        if user_id == 7:
            raise OperationalError("UPDATE account_flags", {}, ConnectionError("connection lost"))
        await real_record(db, user_id, now)

    with patch(f"{JOB_MODULE}.record_expired_payment", new=outage_on_second):
        with pytest.raises(TransientStoreError):
            await expire_payment_orders(now=AFTER_WINDOW, session=db)

    # La orden de 42 quedó confirmada junto con su flag
    assert (await reload(PaymentOrder, first_id)).status == PaymentOrderStatus.EXPIRED
    flag = await _flag(db, 42)
    assert flag.expired_payment_count == 3
    assert flag.is_flagged is True

    retry = await expire_payment_orders(now=AFTER_WINDOW, session=db)

    assert retry.expired == 1
    assert retry.flagged_users == []
    assert (await reload(PaymentOrder, second_id)).status == PaymentOrderStatus.EXPIRED
    assert (await _flag(db, 42)).is_flagged is True
    assert await _count_audits(db, "USER_FLAGGED") == 1



def test_build_job_runs_every_five_minutes():
    job = build_expire_payment_orders_job()

    assert job.job_id == EXPIRE_ORDERS_JOB_ID
    assert job.interval == timedelta(minutes=5)
