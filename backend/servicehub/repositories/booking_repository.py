# backend/servicehub/repositories/booking_repository.py
"""
Booking Repository for the ServiceHub booking engine

Data access for both booking tables. One class serves service and subscription
bookings; the model class is chosen from the booking kind.

Status changes go through ``guarded_update`` only. The precondition (allowed
source statuses and, optionally, the assigned provider) is part of the UPDATE's
WHERE clause and the affected-row count is returned to the caller, so there is
no read-then-write window.
"""

import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingKind, BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import BookingRecordMixin, booking_model_for
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[BookingRecordMixin]):
    """
    Repository for booking rows of a single kind.

    Handles:
    - Inserting new bookings (always ``pending``)
    - Guarded status/assignee updates
    - Customer and provider listings, status counters
    """

    def __init__(self, db: Session, kind: BookingKind = BookingKind.SERVICE):
        self.kind = BookingKind(kind)
        super().__init__(db, booking_model_for(self.kind))

    # Writes

    def create_booking(self, **fields: Any) -> BookingRecordMixin:
        """
        Insert a booking in ``pending`` state.

        Any ``status``, ``provider_id``, ``settled_amount`` or ``cancel_reason``
        supplied by the caller is ignored; those only change through transitions.
        """
        for managed in ("status", "provider_id", "settled_amount", "cancel_reason"):
            fields.pop(managed, None)
        return self.create(status=BookingStatus.PENDING, **fields)

    def guarded_update(
        self,
        booking_id: str,
        expected_statuses: Iterable[BookingStatus],
        values: dict[str, Any],
        provider_id: Optional[str] = None,
    ) -> int:
        """
        Conditionally update one booking.

        Issues ``UPDATE ... WHERE id = :id AND status IN (:expected)
        [AND provider_id = :provider_id]``.

        Args:
            booking_id: Booking to update
            expected_statuses: Statuses the booking must currently be in
            values: Column values to write
            provider_id: When given, the booking must be assigned to this provider

        Returns:
            Number of rows affected (0 or 1)
        """
        expected = [BookingStatus.parse(status) for status in expected_statuses]
        if "status" in values:
            values = {**values, "status": BookingStatus.parse(values["status"])}

        query = self._build_query().filter(
            self.model.id == booking_id,
            self.model.status.in_(expected),
        )
        if provider_id is not None:
            query = query.filter(self.model.provider_id == provider_id)

        affected = self._execute_update(query, values)
        self._expire_cached(booking_id)
        self.logger.debug(
            "Guarded update on %s %s (expected=%s, provider=%s): %s row(s)",
            self.kind.value,
            booking_id,
            [status.value for status in expected],
            provider_id,
            affected,
        )
        return affected

    # Reads

    def get_status(self, booking_id: str) -> Optional[BookingStatus]:
        """Return the stored status, or None when the booking does not exist."""
        try:
            value = (
                self.db.query(self.model.status).filter(self.model.id == booking_id).scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading status for {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to read booking status: {str(e)}") from e
        return BookingStatus(value) if value is not None else None

    def get_assignee(self, booking_id: str) -> Optional[str]:
        """Return the assigned provider id, or None when unassigned or missing."""
        try:
            return (
                self.db.query(self.model.provider_id)
                .filter(self.model.id == booking_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading assignee for {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to read booking assignee: {str(e)}") from e

    def list_bookings(
        self,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> List[BookingRecordMixin]:
        """
        List bookings newest first.

        Args:
            customer_id: Restrict to one customer's bookings
            status: Restrict to one status; must be in the canonical vocabulary
            page: 1-based page number
            per_page: Page size, clamped to the configured maximum

        Raises:
            ValueError: If ``status`` is not a known status
        """
        query = self._build_query()
        if customer_id is not None:
            query = query.filter(self.model.customer_id == customer_id)
        if status is not None:
            query = query.filter(self.model.status == BookingStatus.parse(status))
        return self._execute_query(self._paginate(query, page, per_page))

    def list_provider_requests(
        self,
        provider_id: str,
        statuses: Optional[Iterable[str]] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> List[BookingRecordMixin]:
        """Bookings assigned to ``provider_id``; defaults to those awaiting acceptance."""
        wanted = [BookingStatus.parse(s) for s in statuses] if statuses else [BookingStatus.WAITING]
        query = self._build_query().filter(
            self.model.provider_id == provider_id,
            self.model.status.in_(wanted),
        )
        return self._execute_query(self._paginate(query, page, per_page))

    def count_by_status(self, status: str) -> int:
        """Number of bookings currently in ``status``."""
        parsed = BookingStatus.parse(status)
        try:
            return int(
                self.db.query(func.count(self.model.id))
                .filter(self.model.status == parsed)
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting {parsed.value} bookings: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}") from e

    def _paginate(self, query, page: int, per_page: Optional[int]):
        size = settings.clamp_page_size(per_page)
        offset = (max(int(page or 1), 1) - 1) * size
        return (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(size)
        )
