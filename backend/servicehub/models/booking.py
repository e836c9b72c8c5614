# backend/servicehub/models/booking.py
"""
Booking models for the ServiceHub booking engine.

Two tables share one lifecycle: one-off service bookings and recurring
subscription bookings. Both carry the same status vocabulary, assignee column
and scheduling fields through ``BookingRecordMixin``; only the category
reference and the service-only settled amount differ.

Rows are never deleted. Completion and cancellation are terminal statuses.
"""

from datetime import datetime, timezone
import logging
from typing import Any, ClassVar

from sqlalchemy import Column, Date, DateTime, Numeric, String, Text, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import BookingKind, BookingStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .base_enum import create_safe_enum

logger = logging.getLogger(__name__)


class BookingRecordMixin:
    """Columns and helpers shared by service and subscription bookings."""

    kind: ClassVar[BookingKind]
    category_column: ClassVar[str]

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    customer_id = Column(String(26), nullable=False, index=True)
    provider_id = Column(String(26), nullable=True, index=True)
    customer_name = Column(String(100), nullable=True)

    # Scheduling
    requested_date = Column(Date, nullable=False)
    requested_time = Column(Time, nullable=False)
    service_address = Column(Text, nullable=False)
    contact_phone = Column(String(20), nullable=False)

    quoted_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(
        create_safe_enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    cancel_reason = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    @property
    def category_id(self) -> str:
        return getattr(self, self.category_column)

    @property
    def is_terminal(self) -> bool:
        return BookingStatus.parse(self.status).is_terminal

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.id}: customer={self.customer_id}, "
            f"provider={self.provider_id}, status={self.status}>"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        status = BookingStatus.parse(self.status) if self.status else None
        return {
            "id": self.id,
            "kind": self.kind.value,
            "customer_id": self.customer_id,
            "provider_id": self.provider_id,
            "category_id": self.category_id,
            "customer_name": self.customer_name,
            "requested_date": self.requested_date.isoformat() if self.requested_date else None,
            "requested_time": str(self.requested_time) if self.requested_time else None,
            "service_address": self.service_address,
            "contact_phone": self.contact_phone,
            "quoted_amount": float(self.quoted_amount) if self.quoted_amount is not None else None,
            "status": status.value if status else None,
            "cancel_reason": self.cancel_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ServiceBooking(BookingRecordMixin, Base):
    """A one-off service request. Adds the settled amount reported at completion."""

    __tablename__ = "service_bookings"

    kind = BookingKind.SERVICE
    category_column = "service_category_id"

    service_category_id = Column(String(26), nullable=False, index=True)
    settled_amount = Column(Numeric(10, 2), nullable=True)

    allocation = relationship("ServiceAllocation", back_populates="booking", uselist=False)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["settled_amount"] = (
            float(self.settled_amount) if self.settled_amount is not None else None
        )
        return data


class SubscriptionBooking(BookingRecordMixin, Base):
    """A recurring subscription-plan instance."""

    __tablename__ = "subscription_bookings"

    kind = BookingKind.SUBSCRIPTION
    category_column = "plan_id"

    plan_id = Column(String(26), nullable=False, index=True)

    allocation = relationship("SubscriptionAllocation", back_populates="booking", uselist=False)


BOOKING_MODELS: dict[BookingKind, type[BookingRecordMixin]] = {
    BookingKind.SERVICE: ServiceBooking,
    BookingKind.SUBSCRIPTION: SubscriptionBooking,
}


def booking_model_for(kind: BookingKind | str) -> type[BookingRecordMixin]:
    """Return the ORM class backing bookings of ``kind``."""
    return BOOKING_MODELS[BookingKind(kind)]
