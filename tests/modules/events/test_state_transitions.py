# -*- coding: utf-8 -*-
"""
Tests de la API de transición de estado de pago.

update_payment_state es el único camino que muta payment_state; deriva
lifecycle_state y agrega el audit PAYMENT_STATE_CHANGE en la misma
transacción.
"""

import pytest
from sqlalchemy import select

from app.modules.audit.models import AuditLog
from app.modules.events.enums import LifecycleState, PaymentState
from app.modules.events.errors import EventNotFound, InvariantViolation, RaceLossError
from app.modules.events.models import Event
from app.modules.events.services import derive_lifecycle, update_payment_state

from tests.conftest import utc


async def _state_audits(db, event_id):
    return (
        await db.execute(
            select(AuditLog).where(
                AuditLog.action == "PAYMENT_STATE_CHANGE",
                AuditLog.event_id == event_id,
            )
        )
    ).scalars().all()


# ---------------------------------------------------------------------------
# derive_lifecycle (puro)
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "target,current,expected",
    [
        (PaymentState.PAID, LifecycleState.DRAFT, LifecycleState.SCHEDULED),
        (PaymentState.PAID, LifecycleState.LIVE, LifecycleState.LIVE),
        (PaymentState.PENDING, LifecycleState.DRAFT, LifecycleState.DRAFT),
        (PaymentState.NO_PAID, LifecycleState.SCHEDULED, LifecycleState.DRAFT),
        (PaymentState.NO_PAID, LifecycleState.ENDED, LifecycleState.DRAFT),
        (PaymentState.NO_PAID, LifecycleState.DRAFT, LifecycleState.DRAFT),
    ],
)
def test_derive_lifecycle(target, current, expected):
    assert derive_lifecycle(1, target, current) == expected


def test_pending_outside_draft_is_rejected():
    with pytest.raises(InvariantViolation):
        derive_lifecycle(1, PaymentState.PENDING, LifecycleState.SCHEDULED)


def test_disabled_event_cannot_go_back_to_no_paid():
    with pytest.raises(InvariantViolation):
        derive_lifecycle(7, PaymentState.NO_PAID, LifecycleState.DISABLED)


# ---------------------------------------------------------------------------
# update_payment_state
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
@pytest.mark.parametrize("start", [PaymentState.NO_PAID, PaymentState.PENDING])
async def test_paid_schedules_a_draft_event(db, make_event, reload, start):
    event = await make_event(payment_state=start, lifecycle_state=LifecycleState.DRAFT)
    now = utc(2025, 1, 1, 10, 0)

    change = await update_payment_state(db, event.id, PaymentState.PAID, now=now, reason="verified")
    await db.commit()

    assert change.changed is True
    assert change.old_lifecycle == LifecycleState.DRAFT
    assert change.new_lifecycle == LifecycleState.SCHEDULED

    refreshed = await reload(Event, event.id)
    assert refreshed.payment_state == PaymentState.PAID
    assert refreshed.lifecycle_state == LifecycleState.SCHEDULED

    audits = await _state_audits(db, event.id)
    assert len(audits) == 1
    assert audits[0].user_id == event.user_id
    assert audits[0].details == {
        "old_payment_state": str(start),
        "new_payment_state": "PAID",
        "old_lifecycle_state": "DRAFT",
        "new_lifecycle_state": "SCHEDULED",
        "reason": "verified",
    }


@pytest.mark.asyncio
async def test_repeating_the_same_target_is_a_noop(db, make_event):
    event = await make_event(payment_state=PaymentState.NO_PAID, lifecycle_state=LifecycleState.DRAFT)

    await update_payment_state(db, event.id, PaymentState.PAID)
    await db.commit()
    again = await update_payment_state(db, event.id, PaymentState.PAID)
    await db.commit()

    assert again.changed is False
    assert len(await _state_audits(db, event.id)) == 1


@pytest.mark.asyncio
async def test_no_paid_reverts_scheduled_event_to_draft(db, make_event, reload):
    event = await make_event()

    change = await update_payment_state(db, event.id, PaymentState.NO_PAID)
    await db.commit()

    assert change.changed is True
    refreshed = await reload(Event, event.id)
    assert refreshed.payment_state == PaymentState.NO_PAID
    assert refreshed.lifecycle_state == LifecycleState.DRAFT


@pytest.mark.asyncio
async def test_expected_from_mismatch_loses_the_race(db, make_event, reload):
    event = await make_event()  # ya PAID
    event_id = event.id

    with pytest.raises(RaceLossError):
        await update_payment_state(
            db,
            event_id,
            PaymentState.NO_PAID,
            expected_from={PaymentState.PENDING, PaymentState.NO_PAID},
        )
    await db.rollback()

    refreshed = await reload(Event, event_id)
    assert refreshed.payment_state == PaymentState.PAID
    assert refreshed.lifecycle_state == LifecycleState.SCHEDULED
    assert await _state_audits(db, event_id) == []


@pytest.mark.asyncio
async def test_no_paid_on_disabled_event_is_an_invariant_violation(db, make_event, reload):
    event = await make_event(lifecycle_state=LifecycleState.DISABLED)
    event_id = event.id

    with pytest.raises(InvariantViolation):
        await update_payment_state(db, event_id, PaymentState.NO_PAID)
    await db.rollback()

    assert (await reload(Event, event_id)).lifecycle_state == LifecycleState.DISABLED


@pytest.mark.asyncio
async def test_pending_on_scheduled_event_is_rejected(db, make_event):
    event = await make_event()

    with pytest.raises(InvariantViolation):
        await update_payment_state(db, event.id, PaymentState.PENDING)
    await db.rollback()


@pytest.mark.asyncio
async def test_unknown_event_raises_not_found(db):
    with pytest.raises(EventNotFound):
        await update_payment_state(db, 9999, PaymentState.PAID)
