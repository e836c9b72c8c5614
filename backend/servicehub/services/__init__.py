"""
Service layer for the ServiceHub booking engine.

- BookingLifecycleService: guarded status machine, one instance per booking kind
- AllocationService: idempotent provider allocation ledger
- NotificationService: audit-trail fan-out and per-audience dismissal
"""

from .allocation_service import AllocationService
from .base import BaseService
from .booking_lifecycle_service import BookingLifecycleService
from .notification_service import NotificationService
from .transitions import NotificationTemplate, Transition, TransitionResult

__all__ = [
    "AllocationService",
    "BaseService",
    "BookingLifecycleService",
    "NotificationService",
    "NotificationTemplate",
    "Transition",
    "TransitionResult",
]
