# backend/servicehub/models/allocation.py
"""
Provider allocation ledger.

An allocation records that a provider was matched to, and accepted, a booking.
Rows are append-only and immutable; reviews attach to the allocation id. The
unique key on ``booking_id`` holds the one-allocation-per-booking invariant at
the storage layer.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import declared_attr, relationship

from ..core.enums import BookingKind
from ..core.ulid_helper import generate_ulid
from ..database import Base


class AllocationMixin:
    kind: ClassVar[BookingKind]
    booking_table: ClassVar[str]

    id = Column(String(26), primary_key=True, default=generate_ulid)
    provider_id = Column(String(26), nullable=False, index=True)
    allocated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @declared_attr
    def booking_id(cls):
        return Column(
            String(26),
            ForeignKey(f"{cls.booking_table}.id"),
            nullable=False,
            unique=True,
        )

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.id}: booking={self.booking_id}, "
            f"provider={self.provider_id}>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "booking_id": self.booking_id,
            "provider_id": self.provider_id,
            "allocated_at": self.allocated_at.isoformat() if self.allocated_at else None,
        }


class ServiceAllocation(AllocationMixin, Base):
    __tablename__ = "service_provider_allocations"

    kind = BookingKind.SERVICE
    booking_table = "service_bookings"

    booking = relationship("ServiceBooking", back_populates="allocation")


class SubscriptionAllocation(AllocationMixin, Base):
    __tablename__ = "subscription_provider_allocations"

    kind = BookingKind.SUBSCRIPTION
    booking_table = "subscription_bookings"

    booking = relationship("SubscriptionBooking", back_populates="allocation")


ALLOCATION_MODELS: dict[BookingKind, type[AllocationMixin]] = {
    BookingKind.SERVICE: ServiceAllocation,
    BookingKind.SUBSCRIPTION: SubscriptionAllocation,
}


def allocation_model_for(kind: BookingKind | str) -> type[AllocationMixin]:
    """Return the ORM class backing allocations of ``kind``."""
    return ALLOCATION_MODELS[BookingKind(kind)]
