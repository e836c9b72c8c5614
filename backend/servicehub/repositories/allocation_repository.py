# backend/servicehub/repositories/allocation_repository.py
"""Data access for the append-only provider allocation ledger."""

from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingKind
from ..core.exceptions import RepositoryException
from ..models.allocation import AllocationMixin, allocation_model_for
from .base_repository import BaseRepository


class AllocationRepository(BaseRepository[AllocationMixin]):
    """Allocation rows for one booking kind. Rows are inserted, never updated."""

    def __init__(self, db: Session, kind: BookingKind = BookingKind.SERVICE):
        self.kind = BookingKind(kind)
        super().__init__(db, allocation_model_for(self.kind))

    def get_by_booking(self, booking_id: str) -> Optional[AllocationMixin]:
        return self.find_one_by(booking_id=booking_id)

    def try_insert(self, booking_id: str, provider_id: str) -> Optional[AllocationMixin]:
        """
        Insert an allocation inside a SAVEPOINT.

        Returns None when the unique key on ``booking_id`` rejects the row; the
        savepoint is rolled back and the enclosing transaction stays usable.
        """
        try:
            with self.db.begin_nested():
                allocation = self.model(booking_id=booking_id, provider_id=provider_id)
                self.db.add(allocation)
                self.db.flush()
            return allocation
        except IntegrityError:
            self.logger.info(
                "Allocation for %s booking %s already recorded", self.kind.value, booking_id
            )
            return None
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting allocation for {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to insert allocation: {str(e)}") from e
