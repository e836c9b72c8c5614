"""Notification response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import BookingKind, Visibility
from .base import StandardizedModel


class NotificationResponse(StandardizedModel):
    id: str
    actor_id: str
    customer_id: Optional[str] = None
    provider_id: Optional[str] = None
    booking_id: Optional[str] = None
    booking_kind: Optional[BookingKind] = None
    description: str
    admin_visibility: Visibility
    provider_visibility: Visibility
    customer_visibility: Visibility
    created_at: Optional[datetime] = None


class NotificationListResponse(StandardizedModel):
    """One audience's active notifications plus its unread badge count."""

    notifications: List[NotificationResponse] = Field(default_factory=list)
    total: int = Field(0, ge=0, description="Active notifications for this audience")
