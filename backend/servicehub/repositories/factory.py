# backend/servicehub/repositories/factory.py
"""
Repository Factory for the ServiceHub booking engine

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from ..core.enums import BookingKind
from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .allocation_repository import AllocationRepository
    from .booking_repository import BookingRepository
    from .notification_repository import NotificationRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """
        Create a generic base repository for any model.

        Args:
            db: Database session
            model: SQLAlchemy model class

        Returns:
            BaseRepository instance
        """
        return BaseRepository(db, model)

    @staticmethod
    def create_booking_repository(db: Session, kind: BookingKind) -> "BookingRepository":
        """Create repository for bookings of ``kind``."""
        from .booking_repository import BookingRepository

        return BookingRepository(db, kind)

    @staticmethod
    def create_allocation_repository(db: Session, kind: BookingKind) -> "AllocationRepository":
        """Create repository for the allocation ledger of ``kind``."""
        from .allocation_repository import AllocationRepository

        return AllocationRepository(db, kind)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        """Create repository for notification rows."""
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
