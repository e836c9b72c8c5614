"""Tests for the idempotent allocation ledger."""

from datetime import date, time
from decimal import Decimal

import pytest

from servicehub.core.enums import BookingKind
from servicehub.core.exceptions import RepositoryException, ValidationException
from servicehub.core.ulid_helper import generate_ulid
from servicehub.repositories.booking_repository import BookingRepository
from servicehub.services.allocation_service import AllocationService


@pytest.fixture
def booking_id(db, kind):
    repo = BookingRepository(db, kind)
    booking = repo.create_booking(
        customer_id=generate_ulid(),
        **{repo.model.category_column: generate_ulid()},
        requested_date=date(2026, 11, 2),
        requested_time=time(14, 0),
        service_address="9 Pier Street",
        contact_phone="+15550142",
        quoted_amount=Decimal("75.00"),
    )
    db.commit()
    return booking.id


def test_record_allocation_is_idempotent(db, kind, booking_id, provider_id):
    service = AllocationService(db, kind)

    first = service.record_allocation(booking_id, provider_id)
    second = service.record_allocation(booking_id, provider_id)
    db.commit()

    assert first == second
    assert service.repository.count(booking_id=booking_id) == 1
    assert service.lookup_allocation(booking_id) == first


def test_lookup_without_allocation(db, kind, booking_id):
    assert AllocationService(db, kind).lookup_allocation(booking_id) is None


def test_concurrent_insert_returns_winner(session_factory, kind, booking_id, provider_id, monkeypatch):
    winner_session = session_factory()
    loser_session = session_factory()
    try:
        winner_id = AllocationService(winner_session, kind).record_allocation(booking_id, provider_id)
        winner_session.commit()

        loser = AllocationService(loser_session, kind)
        real_lookup = loser.repository.get_by_booking
        calls = []

        def lookup_missing_first(booking):
            calls.append(booking)
            # The first lookup happened before the winner's row was visible
            return None if len(calls) == 1 else real_lookup(booking)

        monkeypatch.setattr(loser.repository, "get_by_booking", lookup_missing_first)

        assert loser.record_allocation(booking_id, provider_id) == winner_id
        loser_session.commit()
        assert loser.repository.count(booking_id=booking_id) == 1
    finally:
        winner_session.close()
        loser_session.close()


def test_allocation_for_missing_booking_fails(db):
    service = AllocationService(db, BookingKind.SERVICE)

    with pytest.raises(RepositoryException):
        service.record_allocation(generate_ulid(), generate_ulid())


def test_requires_ids(db):
    with pytest.raises(ValidationException):
        AllocationService(db).record_allocation("", generate_ulid())
