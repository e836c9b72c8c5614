"""Tests for notification fan-out, audience isolation and dismissal."""

from datetime import datetime, timedelta, timezone

import pytest

from servicehub.core.enums import Audience, BookingKind, Visibility
from servicehub.core.exceptions import NotFoundException, ValidationException
from servicehub.core.ulid_helper import generate_ulid
from servicehub.models import Notification
from servicehub.services.notification_service import NotificationService
from servicehub.services.transitions import DESCRIPTIONS, NotificationEvent, descriptions_for


@pytest.fixture
def notifications(db):
    return NotificationService(db)


@pytest.fixture
def closed_out(db, lifecycle, in_process_booking):
    """Notification emitted by cancelling work in progress (all audiences active)."""
    result = lifecycle.cancel(in_process_booking, "done early")
    return db.get(Notification, result.notification_ids[0])


def test_emit_rejects_unknown_description(notifications, pending_booking, kind):
    with pytest.raises(ValidationException):
        notifications.emit(
            actor_id=generate_ulid(),
            provider_id=None,
            booking_id=pending_booking,
            kind=kind,
            description="Something happened",
            visibility={Audience.ADMIN: Visibility.ACTIVE},
        )


def test_emit_rejects_description_of_other_kind(notifications, service_lifecycle, booking_payload):
    booking_id = service_lifecycle.create_booking(booking_payload()).booking_id

    with pytest.raises(ValidationException):
        notifications.emit(
            actor_id=generate_ulid(),
            provider_id=None,
            booking_id=booking_id,
            kind=BookingKind.SERVICE,
            description="New subscription service booking",
            visibility={Audience.ADMIN: Visibility.ACTIVE},
        )


def test_emit_rejects_hidden_initial_flag(notifications, pending_booking, kind):
    with pytest.raises(ValidationException):
        notifications.emit(
            actor_id=generate_ulid(),
            provider_id=None,
            booking_id=pending_booking,
            kind=kind,
            description=DESCRIPTIONS[kind][NotificationEvent.CREATED],
            visibility={Audience.ADMIN: Visibility.HIDDEN},
        )


def test_dismiss_only_touches_own_audience(db, notifications, closed_out):
    assert notifications.hide_by_id(closed_out.id, Audience.PROVIDER) is True
    db.expire(closed_out)

    assert closed_out.provider_visibility == Visibility.HIDDEN
    assert closed_out.admin_visibility == Visibility.ACTIVE
    assert closed_out.customer_visibility == Visibility.ACTIVE


def test_hide_by_id_is_idempotent(notifications, closed_out):
    assert notifications.hide_by_id(closed_out.id, Audience.CUSTOMER) is True
    assert notifications.hide_by_id(closed_out.id, Audience.CUSTOMER) is False


def test_hide_by_id_unknown_notification(notifications):
    with pytest.raises(NotFoundException):
        notifications.hide_by_id(generate_ulid(), Audience.ADMIN)


def test_audience_listings_are_isolated(
    notifications, lifecycle, in_process_booking, customer_id, provider_id, other_provider_id
):
    lifecycle.cancel(in_process_booking, "closing out")

    admin = notifications.list_notifications(Audience.ADMIN)
    provider = notifications.list_notifications(Audience.PROVIDER, provider_id)
    customer = notifications.list_notifications(Audience.CUSTOMER, customer_id)

    # created + close-out for the admin, assigned + close-out for the provider
    assert len(admin) == 2
    assert len(provider) == 2
    assert len(customer) == 1
    assert notifications.list_notifications(Audience.PROVIDER, other_provider_id) == []
    assert notifications.list_notifications(Audience.CUSTOMER, generate_ulid()) == []
    assert all(n.description in descriptions_for(Audience.CUSTOMER) for n in customer)


def test_subject_required_for_provider_and_customer(notifications):
    with pytest.raises(ValidationException):
        notifications.list_notifications(Audience.PROVIDER)
    with pytest.raises(ValidationException):
        notifications.hide_all(Audience.CUSTOMER)


def test_hide_oldest_active(db, notifications, lifecycle, booking_payload):
    first = lifecycle.create_booking(booking_payload()).notification_ids[0]
    second = lifecycle.create_booking(booking_payload()).notification_ids[0]
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    db.get(Notification, first).created_at = base
    db.get(Notification, second).created_at = base + timedelta(seconds=1)
    db.commit()

    assert notifications.hide_oldest_active(Audience.ADMIN) == first
    assert notifications.hide_oldest_active(Audience.ADMIN) == second
    assert notifications.hide_oldest_active(Audience.ADMIN) is None
    assert notifications.count_active(Audience.ADMIN) == 0


def test_hide_all_returns_count(notifications, lifecycle, booking_payload):
    for _ in range(3):
        lifecycle.create_booking(booking_payload())

    assert notifications.count_active(Audience.ADMIN) == 3
    assert notifications.hide_all(Audience.ADMIN) == 3
    assert notifications.hide_all(Audience.ADMIN) == 0


def test_list_newest_first(db, notifications, lifecycle, booking_payload):
    ids = [lifecycle.create_booking(booking_payload()).notification_ids[0] for _ in range(3)]
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    for offset, notification_id in enumerate(ids):
        db.get(Notification, notification_id).created_at = base + timedelta(minutes=offset)
    db.commit()

    listed = notifications.list_notifications(Audience.ADMIN, limit=2)
    assert [n.id for n in listed] == [ids[2], ids[1]]
    assert [n.id for n in notifications.list_notifications(Audience.ADMIN, offset=2)] == [ids[0]]


def test_hide_oldest_moves_on_when_row_was_dismissed_meanwhile(
    db, notifications, lifecycle, booking_payload, monkeypatch
):
    first = lifecycle.create_booking(booking_payload()).notification_ids[0]
    second = lifecycle.create_booking(booking_payload()).notification_ids[0]
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    db.get(Notification, first).created_at = base
    db.get(Notification, second).created_at = base + timedelta(seconds=1)
    db.commit()

    real_find = notifications.repository.find_oldest_active
    dismissed = []

    def find_then_dismiss_elsewhere(audience, subject_id, descriptions):
        row = real_find(audience, subject_id, descriptions)
        if row is not None and not dismissed:
            # Another admin dismisses the row between lookup and update
            dismissed.append(row.id)
            notifications.repository.hide(row.id, audience)
        return row

    monkeypatch.setattr(
        notifications.repository, "find_oldest_active", find_then_dismiss_elsewhere
    )

    assert notifications.hide_oldest_active(Audience.ADMIN) == second
    assert dismissed == [first]
    assert notifications.count_active(Audience.ADMIN) == 0
