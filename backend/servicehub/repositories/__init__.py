# backend/servicehub/repositories/__init__.py
"""
Repository layer for the ServiceHub booking engine

Key Components:
- BaseRepository: Foundation for all repositories (reads, inserts, guarded bulk updates)
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: Guarded conditional updates and listings for one booking kind
- AllocationRepository: Append-only allocation ledger
- NotificationRepository: Notification rows and per-audience visibility

Usage:
    from servicehub.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db, BookingKind.SERVICE)
    affected = repository.guarded_update(booking_id, [BookingStatus.PENDING], values)
"""

from .allocation_repository import AllocationRepository
from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository

__all__ = [
    "AllocationRepository",
    "BaseRepository",
    "BookingRepository",
    "IRepository",
    "NotificationRepository",
    "RepositoryFactory",
]
