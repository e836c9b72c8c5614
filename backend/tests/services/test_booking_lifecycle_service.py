"""Tests for the booking lifecycle status machine (both booking kinds)."""

from decimal import Decimal

import pytest

from servicehub.core.enums import Audience, BookingKind, BookingStatus, Visibility
from servicehub.core.exceptions import StateConflictException, ValidationException
from servicehub.core.ulid_helper import generate_ulid
from servicehub.models import Notification, allocation_model_for
from servicehub.services.transitions import DESCRIPTIONS, NotificationEvent, Transition


def _notifications(db, lifecycle, booking_id):
    column = (
        Notification.service_booking_id
        if lifecycle.kind == BookingKind.SERVICE
        else Notification.subscription_booking_id
    )
    return db.query(Notification).filter(column == booking_id).order_by(Notification.id).all()


def _allocations(db, kind, booking_id):
    model = allocation_model_for(kind)
    return db.query(model).filter(model.booking_id == booking_id).all()


class TestCreate:
    def test_create_is_pending_and_notifies_admin(self, db, lifecycle, booking_payload, customer_id):
        result = lifecycle.create_booking(booking_payload())

        booking = lifecycle.get_booking(result.booking_id)
        assert booking.status == BookingStatus.PENDING
        assert booking.provider_id is None
        assert result.to_status == BookingStatus.PENDING
        assert result.from_status is None

        [notification] = _notifications(db, lifecycle, result.booking_id)
        assert result.notification_ids == (notification.id,)
        assert notification.description == DESCRIPTIONS[lifecycle.kind][NotificationEvent.CREATED]
        assert notification.actor_id == customer_id
        assert notification.visibility_for(Audience.ADMIN) == Visibility.ACTIVE
        assert notification.visibility_for(Audience.PROVIDER) == Visibility.NONE
        assert notification.visibility_for(Audience.CUSTOMER) == Visibility.NONE

    def test_category_lands_in_kind_specific_column(self, lifecycle, booking_payload):
        category = generate_ulid()
        result = lifecycle.create_booking(booking_payload(category_id=category))

        booking = lifecycle.get_booking(result.booking_id)
        assert booking.category_id == category


class TestAssignAndDecline:
    def test_scenario_assign_then_decline(
        self, db, lifecycle, pending_booking, provider_id, other_provider_id
    ):
        result = lifecycle.assign(pending_booking, provider_id)

        booking = lifecycle.get_booking(pending_booking)
        assert result.applied
        assert booking.status == BookingStatus.WAITING
        assert booking.provider_id == provider_id

        with pytest.raises(StateConflictException):
            lifecycle.decline(pending_booking, other_provider_id)
        assert lifecycle.get_status(pending_booking) == BookingStatus.WAITING

        lifecycle.decline(pending_booking, provider_id)
        booking = lifecycle.get_booking(pending_booking)
        assert booking.status == BookingStatus.PENDING
        assert booking.provider_id is None

    def test_assign_notifies_provider_only(self, db, lifecycle, pending_booking, provider_id):
        result = lifecycle.assign(pending_booking, provider_id)

        notification = db.get(Notification, result.notification_ids[0])
        assert notification.description == DESCRIPTIONS[lifecycle.kind][NotificationEvent.ASSIGNED]
        assert notification.provider_id == provider_id
        assert notification.visibility_for(Audience.PROVIDER) == Visibility.ACTIVE
        assert notification.visibility_for(Audience.ADMIN) == Visibility.NONE
        assert notification.visibility_for(Audience.CUSTOMER) == Visibility.NONE

    def test_assign_never_allocates(self, db, lifecycle, pending_booking, provider_id):
        lifecycle.assign(pending_booking, provider_id)

        assert _allocations(db, lifecycle.kind, pending_booking) == []

    def test_assign_twice_conflicts(self, lifecycle, waiting_booking, other_provider_id):
        with pytest.raises(StateConflictException) as exc_info:
            lifecycle.assign(waiting_booking, other_provider_id)

        assert exc_info.value.code == "STATE_CONFLICT"
        assert exc_info.value.details["transition"] == "assign"

    def test_decline_emits_no_notification(self, db, lifecycle, waiting_booking, provider_id):
        before = len(_notifications(db, lifecycle, waiting_booking))

        lifecycle.decline(waiting_booking, provider_id)

        assert len(_notifications(db, lifecycle, waiting_booking)) == before

    def test_unknown_booking_conflicts(self, lifecycle, provider_id):
        with pytest.raises(StateConflictException):
            lifecycle.assign(generate_ulid(), provider_id)

    def test_missing_provider_is_validation_error(self, lifecycle, pending_booking):
        with pytest.raises(ValidationException):
            lifecycle.assign(pending_booking, "  ")


class TestAccept:
    def test_scenario_accept_creates_one_allocation(self, db, lifecycle, waiting_booking, provider_id):
        result = lifecycle.accept(waiting_booking, provider_id)

        assert lifecycle.get_status(waiting_booking) == BookingStatus.PROCESS
        [allocation] = _allocations(db, lifecycle.kind, waiting_booking)
        assert allocation.id == result.allocation_id
        assert allocation.provider_id == provider_id

        with pytest.raises(StateConflictException):
            lifecycle.accept(waiting_booking, provider_id)
        assert len(_allocations(db, lifecycle.kind, waiting_booking)) == 1

    def test_accept_by_other_provider_conflicts(
        self, db, lifecycle, waiting_booking, other_provider_id
    ):
        with pytest.raises(StateConflictException):
            lifecycle.accept(waiting_booking, other_provider_id)

        assert lifecycle.get_status(waiting_booking) == BookingStatus.WAITING
        assert _allocations(db, lifecycle.kind, waiting_booking) == []

    def test_accept_pending_booking_conflicts(self, lifecycle, pending_booking, provider_id):
        with pytest.raises(StateConflictException):
            lifecycle.accept(pending_booking, provider_id)


class TestCompletion:
    def test_scenario_report_then_confirm(self, db, service_lifecycle, in_process_service_booking):
        booking_id = in_process_service_booking

        with pytest.raises(StateConflictException):
            service_lifecycle.confirm_completion(booking_id)

        service_lifecycle.report_completion(booking_id, Decimal("150.00"))
        booking = service_lifecycle.get_booking(booking_id)
        assert booking.status == BookingStatus.REQUEST
        assert booking.settled_amount == Decimal("150.00")

        result = service_lifecycle.confirm_completion(booking_id)
        assert result.from_status == BookingStatus.REQUEST
        assert service_lifecycle.get_status(booking_id) == BookingStatus.COMPLETE

    def test_completion_steps_are_silent(self, db, service_lifecycle, in_process_service_booking):
        before = db.query(Notification).count()

        service_lifecycle.report_completion(in_process_service_booking, "99.5")
        service_lifecycle.confirm_completion(in_process_service_booking)

        assert db.query(Notification).count() == before

    def test_report_scoped_to_assigned_provider(
        self, service_lifecycle, in_process_service_booking, other_provider_id
    ):
        with pytest.raises(StateConflictException):
            service_lifecycle.report_completion(
                in_process_service_booking, Decimal("10"), provider_id=other_provider_id
            )

    @pytest.mark.parametrize("amount", ["-1", "abc", None])
    def test_report_rejects_bad_amount(self, service_lifecycle, in_process_service_booking, amount):
        with pytest.raises(ValidationException):
            service_lifecycle.report_completion(in_process_service_booking, amount)

    def test_completion_unavailable_for_subscriptions(self, subscription_lifecycle):
        with pytest.raises(ValidationException):
            subscription_lifecycle.report_completion(generate_ulid(), Decimal("10"))
        with pytest.raises(ValidationException):
            subscription_lifecycle.confirm_completion(generate_ulid())


class TestCancel:
    def test_cancel_pending_is_silent(self, db, lifecycle, pending_booking):
        before = len(_notifications(db, lifecycle, pending_booking))

        result = lifecycle.cancel(pending_booking, "Changed my mind")

        booking = lifecycle.get_booking(pending_booking)
        assert booking.status == BookingStatus.CANCEL
        assert booking.cancel_reason == "Changed my mind"
        assert result.from_status == BookingStatus.PENDING
        assert result.notification_ids == ()
        assert len(_notifications(db, lifecycle, pending_booking)) == before

    def test_cancel_waiting_is_silent(self, db, lifecycle, waiting_booking):
        before = len(_notifications(db, lifecycle, waiting_booking))

        result = lifecycle.cancel(waiting_booking, "Provider unavailable")

        assert result.from_status == BookingStatus.WAITING
        assert result.notification_ids == ()
        assert len(_notifications(db, lifecycle, waiting_booking)) == before

    def test_scenario_cancel_in_process_notifies_everyone(
        self, db, lifecycle, in_process_booking, customer_id
    ):
        result = lifecycle.cancel(in_process_booking, "Job finished early")

        booking = lifecycle.get_booking(in_process_booking)
        assert booking.status == BookingStatus.CANCEL
        assert booking.cancel_reason == "Job finished early"

        notification = db.get(Notification, result.notification_ids[0])
        assert notification.description == DESCRIPTIONS[lifecycle.kind][NotificationEvent.COMPLETED]
        assert notification.customer_id == customer_id
        for audience in Audience:
            assert notification.visibility_for(audience) == Visibility.ACTIVE

    @pytest.mark.parametrize("terminal", ["cancel", "complete"])
    def test_cancel_terminal_booking_conflicts(
        self, db, service_lifecycle, in_process_service_booking, terminal
    ):
        booking_id = in_process_service_booking
        if terminal == "cancel":
            service_lifecycle.cancel(booking_id, "first")
        else:
            service_lifecycle.report_completion(booking_id, Decimal("20"))
            service_lifecycle.confirm_completion(booking_id)
        notifications_before = db.query(Notification).count()

        with pytest.raises(StateConflictException):
            service_lifecycle.cancel(booking_id, "again")

        assert db.query(Notification).count() == notifications_before

    def test_provider_scoped_cancel(self, lifecycle, waiting_booking, provider_id, other_provider_id):
        with pytest.raises(StateConflictException):
            lifecycle.cancel(waiting_booking, "not mine", provider_id=other_provider_id)

        lifecycle.cancel(waiting_booking, "cannot make it", provider_id=provider_id)
        assert lifecycle.get_status(waiting_booking) == BookingStatus.CANCEL

    def test_cancel_requires_reason(self, lifecycle, pending_booking):
        with pytest.raises(ValidationException):
            lifecycle.cancel(pending_booking, "")

    def test_cancel_unknown_booking_conflicts(self, lifecycle):
        with pytest.raises(StateConflictException):
            lifecycle.cancel(generate_ulid(), "whatever")


class TestReads:
    def test_list_bookings_validates_status(self, lifecycle, pending_booking, customer_id):
        assert [b.id for b in lifecycle.list_bookings(customer_id=customer_id)] == [pending_booking]
        assert lifecycle.list_bookings(customer_id=customer_id, status="Pending")

        with pytest.raises(ValidationException):
            lifecycle.list_bookings(status="bogus")

    def test_provider_requests_default_to_waiting(self, lifecycle, waiting_booking, provider_id):
        assert [b.id for b in lifecycle.list_provider_requests(provider_id)] == [waiting_booking]
        assert lifecycle.count_by_status("waiting") == 1


def test_transition_table_shape():
    assert Transition.ACCEPT.requires_assignee
    assert Transition.CANCEL.sources == BookingStatus.active()
    assert not Transition.CONFIRM_COMPLETION.allowed_for(BookingKind.SUBSCRIPTION)
    assert Transition.DECLINE.notification_for(BookingKind.SERVICE) is None
    assert Transition.CANCEL.notification_for(BookingKind.SERVICE, prior=BookingStatus.WAITING) is None
