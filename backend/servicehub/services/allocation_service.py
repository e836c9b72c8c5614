# backend/servicehub/services/allocation_service.py
"""
Allocation ledger service.

Records that a provider accepted a booking. Recording is idempotent: a booking
has at most one allocation, backed by the unique key on ``booking_id``. The
caller owns the transaction; this service only flushes.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingKind
from ..core.exceptions import RepositoryException, ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class AllocationService(BaseService):
    """Idempotent writes and lookups against one kind's allocation table."""

    def __init__(self, db: Session, kind: BookingKind = BookingKind.SERVICE):
        super().__init__(db)
        self.kind = BookingKind(kind)
        self.repository = RepositoryFactory.create_allocation_repository(db, self.kind)

    @BaseService.measure_operation("record_allocation")
    def record_allocation(self, booking_id: str, provider_id: str) -> str:
        """
        Return the allocation id for ``booking_id``, inserting one if none exists.

        A concurrent insert that wins the unique key is re-read and its id
        returned, so two calls never produce two rows.

        Raises:
            ValidationException: Missing booking or provider id
            RepositoryException: The row could neither be inserted nor found
                (e.g. the booking does not exist)
        """
        if not booking_id or not provider_id:
            raise ValidationException("booking_id and provider_id are required")

        existing = self.repository.get_by_booking(booking_id)
        if existing is not None:
            if existing.provider_id != provider_id:
                self.logger.warning(
                    "Booking %s already allocated to %s; ignoring %s",
                    booking_id,
                    existing.provider_id,
                    provider_id,
                )
            return existing.id

        allocation = self.repository.try_insert(booking_id, provider_id)
        if allocation is None:
            allocation = self.repository.get_by_booking(booking_id)
            if allocation is None:
                raise RepositoryException(
                    f"Allocation for {self.kind.value} booking {booking_id} was rejected"
                )
        else:
            self.logger.info(
                "Allocated %s booking %s to provider %s (%s)",
                self.kind.value,
                booking_id,
                provider_id,
                allocation.id,
            )
        return allocation.id

    def lookup_allocation(self, booking_id: str) -> Optional[str]:
        allocation = self.repository.get_by_booking(booking_id)
        return allocation.id if allocation is not None else None
