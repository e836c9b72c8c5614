# backend/tests/conftest.py
"""
Pytest configuration for the booking engine.

Every test gets its own file-backed SQLite database under ``tmp_path`` so that
tests can open a second session against the same data and race it against the
first.
"""

from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from servicehub.core.config import settings
from servicehub.core.enums import BookingKind
from servicehub.core.ulid_helper import generate_ulid
from servicehub.database import build_engine, init_db
from servicehub.schemas.booking import BookingCreate
from servicehub.services.booking_lifecycle_service import BookingLifecycleService

settings.is_testing = True


@pytest.fixture
def engine(tmp_path):
    test_engine = build_engine(f"sqlite:///{tmp_path / 'servicehub_test.db'}")
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    """A fresh session for each test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def customer_id():
    return generate_ulid()


@pytest.fixture
def provider_id():
    return generate_ulid()


@pytest.fixture
def other_provider_id():
    return generate_ulid()


@pytest.fixture
def booking_payload(customer_id):
    """Factory for valid BookingCreate payloads."""

    def _make(**overrides):
        data = {
            "customer_id": customer_id,
            "category_id": generate_ulid(),
            "customer_name": "Dana Customer",
            "requested_date": date(2026, 11, 2),
            "requested_time": time(9, 30),
            "service_address": "12 Harbour Road",
            "contact_phone": "+15550100",
            "quoted_amount": Decimal("120.00"),
        }
        data.update(overrides)
        return BookingCreate(**data)

    return _make


@pytest.fixture(params=[BookingKind.SERVICE, BookingKind.SUBSCRIPTION], ids=lambda k: k.value)
def kind(request):
    return request.param


@pytest.fixture
def lifecycle(db, kind):
    return BookingLifecycleService(db, kind)


@pytest.fixture
def service_lifecycle(db):
    return BookingLifecycleService(db, BookingKind.SERVICE)


@pytest.fixture
def subscription_lifecycle(db):
    return BookingLifecycleService(db, BookingKind.SUBSCRIPTION)


@pytest.fixture
def pending_booking(lifecycle, booking_payload):
    """Id of a committed pending booking of the parametrised kind."""
    return lifecycle.create_booking(booking_payload()).booking_id


@pytest.fixture
def waiting_booking(lifecycle, pending_booking, provider_id):
    lifecycle.assign(pending_booking, provider_id)
    return pending_booking


@pytest.fixture
def in_process_booking(lifecycle, waiting_booking, provider_id):
    lifecycle.accept(waiting_booking, provider_id)
    return waiting_booking


@pytest.fixture
def in_process_service_booking(service_lifecycle, booking_payload, provider_id):
    booking_id = service_lifecycle.create_booking(booking_payload()).booking_id
    service_lifecycle.assign(booking_id, provider_id)
    service_lifecycle.accept(booking_id, provider_id)
    return booking_id
