# -*- coding: utf-8 -*-
"""
backend/tests/conftest.py

Config global de tests para Jemputan.

- PYTHON_ENV=test ANTES de importar la app (settings de test: SQLite en
  memoria, scheduler apagado).
- Engine aiosqlite en memoria por test (StaticPool: una sola conexión,
  todas las sesiones ven las mismas tablas).
- Fábricas de filas (eventos, órdenes, detalle) que confirman al crear.
- Singletons (rate limiter, scheduler, settings) limpios entre tests.

Los jobs reciben la sesión del test (`session=db`) y un "now" fijo; nunca
dependen del reloj real.
"""

import os

os.environ["PYTHON_ENV"] = "test"

from collections.abc import AsyncIterator
from datetime import date, datetime, time, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.shared.config.config_loader import get_settings
from app.shared.database import Base, get_async_session
from app.shared.scheduler import reset_scheduler
from app.shared.security.rate_limit_service import RateLimitService

# Registra todas las tablas en Base.metadata
from app.modules.abuse.models import AccountFlag  # noqa: F401
from app.modules.audit.models import AuditLog  # noqa: F401
from app.modules.events.enums import LifecycleState, PaymentState, RsvpResponse
from app.modules.events.models import (
    AttendanceLog,
    Event,
    Guest,
    GuestMessage,
    Invitation,
    Rsvp,
)
from app.modules.payments.enums import PaymentOrderStatus
from app.modules.payments.models import PaymentOrder


def utc(*args) -> datetime:
    """datetime(...) en UTC."""
    return datetime(*args, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# Singletons limpios
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _reset_singletons():
    get_settings.cache_clear()
    RateLimitService.reset_instance()
    reset_scheduler()
    yield
    RateLimitService.reset_instance()
    reset_scheduler()
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Base de datos
# -----------------------------------------------------------------------------
@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def reload(db):
    """Relee una fila desde BD (los UPDATE masivos no sincronizan la sesión)."""
    async def _reload(model, pk):
        return await db.get(model, pk, populate_existing=True)
    return _reload


# -----------------------------------------------------------------------------
# Fábricas
# -----------------------------------------------------------------------------
@pytest.fixture
def make_event(db):
    async def _make(**overrides) -> Event:
        values = dict(
            user_id=1,
            event_name="Majlis Perkahwinan",
            payment_state=PaymentState.PAID,
            lifecycle_state=LifecycleState.SCHEDULED,
            event_date=date(2025, 1, 1),
            start_time=time(9, 0),
            end_time=time(17, 0),
        )
        values.update(overrides)
        event = Event(**values)
        db.add(event)
        await db.commit()
        return event
    return _make


@pytest.fixture
def make_order(db):
    counter = {"n": 0}

    async def _make(event_id=None, user_id=1, created_at=None, **overrides) -> PaymentOrder:
        counter["n"] += 1
        created_at = created_at or utc(2025, 1, 1, 10, 0)
        values = dict(
            event_id=event_id,
            user_id=user_id,
            order_ref=f"ORD-20250101-TEST{counter['n']:04d}",
            status=PaymentOrderStatus.PENDING,
            amount=4900,
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=15),
        )
        values.update(overrides)
        order = PaymentOrder(**values)
        db.add(order)
        await db.commit()
        return order
    return _make


@pytest.fixture
def populate_event(db):
    """Crea datos de detalle para un evento y devuelve el conteo esperado."""
    async def _populate(event_id: int) -> dict:
        guests = [
            Guest(event_id=event_id, name="Aisyah", pax=2),
            Guest(event_id=event_id, name="Badrul", pax=4),
            Guest(event_id=event_id, name="Chong", pax=1),
        ]
        db.add_all(guests)
        await db.flush()

        db.add_all([
            Rsvp(event_id=event_id, guest_id=guests[0].id, response=RsvpResponse.YES),
            # Un invitado que cambió de opinión: dos RSVPs, sigue siendo un invitado
            Rsvp(event_id=event_id, guest_id=guests[1].id, response=RsvpResponse.MAYBE),
            Rsvp(event_id=event_id, guest_id=guests[1].id, response=RsvpResponse.YES),
            Rsvp(event_id=event_id, guest_id=guests[2].id, response=RsvpResponse.NO),
            AttendanceLog(event_id=event_id, guest_id=guests[0].id),
            AttendanceLog(event_id=event_id, guest_id=guests[1].id),
            GuestMessage(event_id=event_id, body="Tahniah!"),
            Invitation(event_id=event_id, slug=f"majlis-{event_id}", view_count=57),
        ])
        await db.commit()
        return {
            "total_guests": 3,
            "total_pax": 7,
            "rsvp_counts": {"yes": 2, "no": 1, "maybe": 1},
            "checkins": 2,
            "messages": 1,
            "views": 57,
        }
    return _populate


# -----------------------------------------------------------------------------
# App FastAPI + cliente httpx
# -----------------------------------------------------------------------------
@pytest.fixture
def app(session_factory):
    from app.main import app as fastapi_app

    async def _override_session():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_async_session] = _override_session
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncIterator[AsyncClient]:
    """Cliente HTTP contra la app, con startup/shutdown vía asgi-lifespan."""
    from asgi_lifespan import LifespanManager

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client

# Fin del archivo backend/tests/conftest.py
