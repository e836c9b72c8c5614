"""
Database models for the ServiceHub booking engine.

- Bookings: ServiceBooking, SubscriptionBooking (shared lifecycle mixin)
- Allocations: ServiceAllocation, SubscriptionAllocation (append-only ledger)
- Notification: per-audience visibility audit trail
"""

from .allocation import (
    ALLOCATION_MODELS,
    AllocationMixin,
    ServiceAllocation,
    SubscriptionAllocation,
    allocation_model_for,
)
from .booking import (
    BOOKING_MODELS,
    BookingRecordMixin,
    ServiceBooking,
    SubscriptionBooking,
    booking_model_for,
)
from .notification import BOOKING_COLUMNS, VISIBILITY_COLUMNS, Notification

__all__ = [
    "ALLOCATION_MODELS",
    "AllocationMixin",
    "BOOKING_COLUMNS",
    "BOOKING_MODELS",
    "BookingRecordMixin",
    "Notification",
    "ServiceAllocation",
    "ServiceBooking",
    "SubscriptionAllocation",
    "SubscriptionBooking",
    "VISIBILITY_COLUMNS",
    "allocation_model_for",
    "booking_model_for",
]
