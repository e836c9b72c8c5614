"""
Booking request/response schemas.

``BookingCreate`` carries everything a customer submits; ``category_id`` is the
service category for service bookings and the plan for subscription bookings.
Format rules for phone numbers and addresses belong to the request layer; only
presence and basic shape are checked here.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator

from ..core.enums import BookingKind, BookingStatus
from .base import Money, StandardizedModel, StrictRequestModel


def _require_text(value: object, field_name: str) -> object:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError(f"{field_name} must not be blank")
    return value


def _check_amount(value: Decimal) -> Decimal:
    if not value.is_finite() or value < 0:
        raise ValueError("Amount must be a non-negative number")
    return value.quantize(Decimal("0.01"))


class BookingCreate(StrictRequestModel):
    """Create a booking. New bookings always start ``pending`` and unassigned."""

    customer_id: str = Field(..., min_length=1, description="Customer placing the booking")
    category_id: str = Field(
        ..., min_length=1, description="Service category (service) or plan (subscription)"
    )
    customer_name: Optional[str] = Field(None, max_length=100)
    requested_date: date = Field(..., description="Requested service date")
    requested_time: time = Field(..., description="Requested start time")
    service_address: str = Field(..., description="Where the work happens")
    contact_phone: str = Field(..., max_length=20)
    quoted_amount: Money = Field(..., description="Price quoted at booking time")

    @field_validator("customer_id", "category_id", "service_address", "contact_phone", mode="before")
    @classmethod
    def _strip_required(cls, v: object, info: ValidationInfo) -> object:
        return _require_text(v, info.field_name)

    @field_validator("requested_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        """Convert HH:MM strings to time objects."""
        if isinstance(v, str) and v.count(":") == 1:
            try:
                hour, minute = v.split(":")
                return time(int(hour), int(minute))
            except ValueError:
                raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
        return v

    @field_validator("quoted_amount")
    @classmethod
    def _non_negative(cls, v: Decimal) -> Decimal:
        return _check_amount(v)


class CompletionReport(StrictRequestModel):
    """Provider's completion report for a service booking."""

    settled_amount: Money

    @field_validator("settled_amount")
    @classmethod
    def _non_negative(cls, v: Decimal) -> Decimal:
        return _check_amount(v)


class BookingResponse(StandardizedModel):
    id: str
    kind: BookingKind
    customer_id: str
    provider_id: Optional[str] = None
    category_id: str
    customer_name: Optional[str] = None
    requested_date: date
    requested_time: time
    service_address: str
    contact_phone: str
    quoted_amount: Money
    settled_amount: Optional[Money] = None
    status: BookingStatus
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
