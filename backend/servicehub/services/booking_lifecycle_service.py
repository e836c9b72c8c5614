# backend/servicehub/services/booking_lifecycle_service.py
"""
Booking lifecycle service for the ServiceHub booking engine.

One class drives both booking kinds; instantiate it per kind:

    service_lifecycle = BookingLifecycleService(db, BookingKind.SERVICE)
    subscription_lifecycle = BookingLifecycleService(db, BookingKind.SUBSCRIPTION)

Every transition is a single unit of work. The precondition is enforced by the
conditional UPDATE itself; when it matches no row the unit is rolled back and
StateConflictException is raised. Allocation rows and notification rows are
written in the same unit as the status change they belong to.
"""

from contextlib import contextmanager
from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingKind, BookingStatus
from ..core.exceptions import NotFoundException, StateConflictException, ValidationException
from ..models.booking import BookingRecordMixin
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.base import validate_request
from ..schemas.booking import BookingCreate, CompletionReport
from .allocation_service import AllocationService
from .base import BaseService
from .notification_service import NotificationService
from .transitions import NotificationTemplate, Transition, TransitionResult

logger = logging.getLogger(__name__)


class BookingLifecycleService(BaseService):
    """
    Status machine for one booking kind.

    pending -> waiting -> process -> [request ->] complete, and cancel from any
    non-terminal status. The request step exists for service bookings only.
    """

    def __init__(
        self,
        db: Session,
        kind: BookingKind = BookingKind.SERVICE,
        allocation_service: Optional[AllocationService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.kind = BookingKind(kind)
        self.repository = RepositoryFactory.create_booking_repository(db, self.kind)
        self.allocation_service = allocation_service or AllocationService(db, self.kind)
        self.notification_service = notification_service or NotificationService(db)

    # Transitions

    @BaseService.measure_operation("create_booking")
    def create_booking(self, data: BookingCreate, actor_id: Optional[str] = None) -> TransitionResult:
        """
        Insert a pending booking and notify the admin.

        Args:
            data: Validated booking fields
            actor_id: Acting user; defaults to the booking's customer

        Returns:
            TransitionResult with the new booking id and the admin notification id
        """
        fields = dict(data)
        fields[self.repository.model.category_column] = fields.pop("category_id")

        with self._tracked(Transition.CREATE), self.transaction():
            booking = self.repository.create_booking(**fields)
            notification_id = self._notify(Transition.CREATE, booking, actor_id)

        self.log_operation("create_booking", booking_id=booking.id, kind=self.kind.value)
        return self._result(
            Transition.CREATE, booking.id, None, notification_ids=(notification_id,)
        )

    @BaseService.measure_operation("assign")
    def assign(
        self, booking_id: str, provider_id: str, actor_id: Optional[str] = None
    ) -> TransitionResult:
        """Move a pending booking to a provider (status waiting) and notify that provider."""
        self._require(booking_id=booking_id, provider_id=provider_id)
        transition = Transition.ASSIGN

        with self._tracked(transition), self.transaction():
            self._guarded(
                transition,
                booking_id,
                {"provider_id": provider_id, "status": transition.target},
            )
            booking = self._load(booking_id)
            notification_id = self._notify(transition, booking, actor_id)

        return self._result(
            transition, booking_id, BookingStatus.PENDING, notification_ids=(notification_id,)
        )

    @BaseService.measure_operation("accept")
    def accept(self, booking_id: str, provider_id: str) -> TransitionResult:
        """
        Assigned provider accepts: status process plus one allocation row.

        Raises:
            StateConflictException: Booking is not waiting, or is assigned to
                someone else (including a concurrent accept that got there first)
        """
        self._require(booking_id=booking_id, provider_id=provider_id)
        transition = Transition.ACCEPT

        with self._tracked(transition), self.transaction():
            self._guarded(
                transition, booking_id, {"status": transition.target}, provider_id=provider_id
            )
            allocation_id = self.allocation_service.record_allocation(booking_id, provider_id)

        return self._result(
            transition, booking_id, BookingStatus.WAITING, allocation_id=allocation_id
        )

    @BaseService.measure_operation("decline")
    def decline(self, booking_id: str, provider_id: str) -> TransitionResult:
        """Assigned provider declines: back to pending and unassigned."""
        self._require(booking_id=booking_id, provider_id=provider_id)
        transition = Transition.DECLINE

        with self._tracked(transition), self.transaction():
            self._guarded(
                transition,
                booking_id,
                {"status": transition.target, "provider_id": None},
                provider_id=provider_id,
            )

        return self._result(transition, booking_id, BookingStatus.WAITING)

    @BaseService.measure_operation("report_completion")
    def report_completion(
        self,
        booking_id: str,
        settled_amount: Decimal,
        provider_id: Optional[str] = None,
    ) -> TransitionResult:
        """
        Provider reports the work done and the settled amount (service bookings only).

        When ``provider_id`` is given the booking must be assigned to that provider.
        """
        transition = Transition.REPORT_COMPLETION
        self._require_kind(transition)
        self._require(booking_id=booking_id)
        amount = validate_request(
            CompletionReport, {"settled_amount": settled_amount}, "Invalid settled amount"
        ).settled_amount

        with self._tracked(transition), self.transaction():
            self._guarded(
                transition,
                booking_id,
                {"status": transition.target, "settled_amount": amount},
                provider_id=provider_id,
            )

        return self._result(transition, booking_id, BookingStatus.PROCESS)

    @BaseService.measure_operation("confirm_completion")
    def confirm_completion(self, booking_id: str) -> TransitionResult:
        """Customer confirms a reported completion (service bookings only)."""
        transition = Transition.CONFIRM_COMPLETION
        self._require_kind(transition)
        self._require(booking_id=booking_id)

        with self._tracked(transition), self.transaction():
            self._guarded(transition, booking_id, {"status": transition.target})

        return self._result(transition, booking_id, BookingStatus.REQUEST)

    @BaseService.measure_operation("cancel")
    def cancel(
        self,
        booking_id: str,
        reason: str,
        provider_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> TransitionResult:
        """
        Cancel a non-terminal booking and record the reason.

        Cancelling work in progress closes the job out: the notification uses
        the completion description and is active for all three audiences.
        Cancelling before work started is silent.

        Args:
            booking_id: Booking to cancel
            reason: Why; required
            provider_id: When given, only the assigned provider may cancel
            actor_id: Acting user; defaults to the booking's customer

        Raises:
            ValidationException: Blank reason
            StateConflictException: Booking missing, terminal, reassigned, or
                changed status after it was read
        """
        self._require(booking_id=booking_id, reason=reason)
        transition = Transition.CANCEL

        with self._tracked(transition), self.transaction():
            prior = self.repository.get_status(booking_id)
            if prior is None or prior not in transition.sources:
                raise self._conflict(transition, booking_id, prior)
            self._guarded(
                transition,
                booking_id,
                {"status": transition.target, "cancel_reason": reason.strip()},
                provider_id=provider_id,
                expected=(prior,),
            )
            booking = self._load(booking_id)
            notification_id = self._notify(transition, booking, actor_id, prior=prior)

        notification_ids = (notification_id,) if notification_id else ()
        return self._result(transition, booking_id, prior, notification_ids=notification_ids)

    # Reads

    def get_booking(self, booking_id: str) -> BookingRecordMixin:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(
                "Booking not found", details={"booking_id": booking_id, "kind": self.kind.value}
            )
        return booking

    def get_status(self, booking_id: str) -> Optional[BookingStatus]:
        return self.repository.get_status(booking_id)

    def list_bookings(
        self,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> List[BookingRecordMixin]:
        """Newest-first bookings; an unknown ``status`` filter raises ValidationException."""
        self._check_status(status)
        return self.repository.list_bookings(customer_id, status, page, per_page)

    def list_provider_requests(
        self,
        provider_id: str,
        statuses: Optional[Iterable[str]] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> List[BookingRecordMixin]:
        """Bookings assigned to a provider, by default those still awaiting acceptance."""
        self._require(provider_id=provider_id)
        for status in statuses or ():
            self._check_status(status)
        return self.repository.list_provider_requests(provider_id, statuses, page, per_page)

    def count_by_status(self, status: str) -> int:
        self._check_status(status)
        return self.repository.count_by_status(status)

    # Internals

    def _guarded(
        self,
        transition: Transition,
        booking_id: str,
        values: Dict[str, Any],
        provider_id: Optional[str] = None,
        expected: Optional[Iterable[BookingStatus]] = None,
    ) -> None:
        sources = tuple(expected) if expected is not None else tuple(transition.sources)
        affected = self.repository.guarded_update(
            booking_id, sources, values, provider_id=provider_id
        )
        if affected == 0:
            raise self._conflict(transition, booking_id, None, provider_id)
        self.logger.info(
            f"{self.kind.value} booking {booking_id}: {transition.label} -> "
            f"{transition.target.value}"
        )

    def _conflict(
        self,
        transition: Transition,
        booking_id: str,
        current: Optional[BookingStatus],
        provider_id: Optional[str] = None,
    ) -> StateConflictException:
        self.logger.warning(
            f"{transition.label} rejected for {self.kind.value} booking {booking_id} "
            f"(status={current.value if current else 'unknown'}, provider={provider_id})"
        )
        return StateConflictException(
            details={
                "booking_id": booking_id,
                "kind": self.kind.value,
                "transition": transition.label,
            }
        )

    def _notify(
        self,
        transition: Transition,
        booking: BookingRecordMixin,
        actor_id: Optional[str],
        prior: Optional[BookingStatus] = None,
    ) -> Optional[str]:
        template: Optional[NotificationTemplate] = transition.notification_for(
            self.kind, prior=prior
        )
        if template is None:
            return None
        notification = self.notification_service.emit(
            actor_id=actor_id or booking.customer_id,
            provider_id=booking.provider_id,
            booking_id=booking.id,
            kind=self.kind,
            description=template.description,
            visibility=template.visibility,
            customer_id=booking.customer_id,
        )
        return notification.id

    def _load(self, booking_id: str) -> BookingRecordMixin:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    @contextmanager
    def _tracked(self, transition: Transition) -> Iterator[None]:
        outcome = "applied"
        try:
            yield
        except StateConflictException:
            outcome = "conflict"
            raise
        except Exception:
            outcome = "error"
            raise
        finally:
            if settings.metrics_enabled:
                prometheus_metrics.record_transition(self.kind.value, transition.label, outcome)

    def _result(
        self,
        transition: Transition,
        booking_id: str,
        from_status: Optional[BookingStatus],
        allocation_id: Optional[str] = None,
        notification_ids: Tuple[str, ...] = (),
    ) -> TransitionResult:
        return TransitionResult(
            kind=self.kind,
            transition=transition,
            booking_id=booking_id,
            from_status=from_status,
            to_status=transition.target,
            allocation_id=allocation_id,
            notification_ids=tuple(notification_ids),
        )

    def _require_kind(self, transition: Transition) -> None:
        if not transition.allowed_for(self.kind):
            raise ValidationException(
                f"{transition.label} is only available for service bookings",
                details={"kind": self.kind.value, "transition": transition.label},
            )

    @staticmethod
    def _require(**values: Optional[str]) -> None:
        missing = [name for name, value in values.items() if not value or not str(value).strip()]
        if missing:
            raise ValidationException(
                f"Missing required field(s): {', '.join(missing)}", details={"fields": missing}
            )

    @staticmethod
    def _check_status(status: Optional[str]) -> None:
        if status is None:
            return
        try:
            BookingStatus.parse(status)
        except ValueError:
            raise ValidationException(
                f"Unknown booking status: {status}", details={"status": status}
            )
