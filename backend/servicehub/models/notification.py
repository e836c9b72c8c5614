"""
Notification audit trail.

One row per externally observable transition. Each audience (admin, provider,
customer) has its own visibility flag, so dismissing a row for one role leaves
the other roles' views and the audit record untouched. Rows are never deleted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.sql import func

from ..core.enums import Audience, BookingKind, Visibility
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .base_enum import create_safe_enum

VISIBILITY_COLUMNS: dict[Audience, str] = {
    Audience.ADMIN: "admin_visibility",
    Audience.PROVIDER: "provider_visibility",
    Audience.CUSTOMER: "customer_visibility",
}

BOOKING_COLUMNS: dict[BookingKind, str] = {
    BookingKind.SERVICE: "service_booking_id",
    BookingKind.SUBSCRIPTION: "subscription_booking_id",
}


def _visibility_column(audience: Audience) -> Column:
    return Column(
        create_safe_enum(Visibility, f"ck_notifications_{audience.value}_visibility"),
        nullable=False,
        default=Visibility.NONE,
    )


class Notification(Base):
    """A transition fact with independent admin/provider/customer visibility."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    actor_id = Column(String(26), nullable=False, index=True)
    customer_id = Column(String(26), nullable=True, index=True)
    provider_id = Column(String(26), nullable=True, index=True)
    service_booking_id = Column(String(26), ForeignKey("service_bookings.id"), nullable=True)
    subscription_booking_id = Column(
        String(26), ForeignKey("subscription_bookings.id"), nullable=True
    )
    description = Column(String(100), nullable=False)

    admin_visibility = _visibility_column(Audience.ADMIN)
    provider_visibility = _visibility_column(Audience.PROVIDER)
    customer_visibility = _visibility_column(Audience.CUSTOMER)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "service_booking_id IS NULL OR subscription_booking_id IS NULL",
            name="ck_notifications_single_booking",
        ),
        Index("ix_notifications_admin_visibility", "admin_visibility", "description"),
        Index("ix_notifications_provider_visibility", "provider_id", "provider_visibility"),
        Index("ix_notifications_customer_visibility", "customer_id", "customer_visibility"),
    )

    @property
    def booking_kind(self) -> Optional[BookingKind]:
        if self.service_booking_id:
            return BookingKind.SERVICE
        if self.subscription_booking_id:
            return BookingKind.SUBSCRIPTION
        return None

    @property
    def booking_id(self) -> Optional[str]:
        return self.service_booking_id or self.subscription_booking_id

    def visibility_for(self, audience: Audience) -> Visibility:
        return Visibility(getattr(self, VISIBILITY_COLUMNS[Audience(audience)]))

    def __repr__(self) -> str:
        return (
            f"<Notification {self.id}: {self.description!r} admin={self.admin_visibility} "
            f"provider={self.provider_visibility} customer={self.customer_visibility}>"
        )

    def to_dict(self) -> dict[str, Any]:
        kind = self.booking_kind
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "customer_id": self.customer_id,
            "provider_id": self.provider_id,
            "booking_id": self.booking_id,
            "booking_kind": kind.value if kind else None,
            "description": self.description,
            "admin_visibility": Visibility(self.admin_visibility).value,
            "provider_visibility": Visibility(self.provider_visibility).value,
            "customer_visibility": Visibility(self.customer_visibility).value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


__all__ = ["Notification", "VISIBILITY_COLUMNS", "BOOKING_COLUMNS"]
