"""
External operations of the booking engine.

Each function takes an injected ``Session`` (one per request; see
``servicehub.database.get_db``) and returns a ``ResultEnvelope``. Domain errors
become ``status="error"`` envelopes carrying the exception's code; anything
else propagates to the request layer.
"""

from decimal import Decimal
from functools import wraps
import logging
from typing import Any, Callable, Optional, TypeVar, Union

from sqlalchemy.orm import Session

from ..core.enums import Audience, BookingKind
from ..core.exceptions import DomainException, ValidationException
from ..schemas.base import validate_request
from ..schemas.base_responses import ResultEnvelope
from ..schemas.booking import BookingCreate, BookingResponse, CompletionReport
from ..schemas.notification import NotificationListResponse, NotificationResponse
from ..services.booking_lifecycle_service import BookingLifecycleService
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., ResultEnvelope])


def envelope(func: F) -> F:
    """Turn DomainException into an error envelope."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> ResultEnvelope:
        try:
            return func(*args, **kwargs)
        except DomainException as exc:
            logger.info(f"{func.__name__} failed: {exc.code}: {exc.message}")
            return ResultEnvelope.from_exception(exc)

    return wrapper  # type: ignore[return-value]


def _kind(kind: Union[BookingKind, str]) -> BookingKind:
    try:
        return BookingKind(str(getattr(kind, "value", kind)).strip().lower())
    except ValueError:
        raise ValidationException(f"Unknown booking kind: {kind}", details={"kind": str(kind)})


def _audience(audience: Union[Audience, str]) -> Audience:
    try:
        return Audience(str(getattr(audience, "value", audience)).strip().lower())
    except ValueError:
        raise ValidationException(
            f"Unknown audience: {audience}", details={"audience": str(audience)}
        )


def _lifecycle(db: Session, kind: Union[BookingKind, str]) -> BookingLifecycleService:
    return BookingLifecycleService(db, _kind(kind))


@envelope
def create_booking(
    db: Session,
    kind: Union[BookingKind, str],
    payload: Union[BookingCreate, dict],
    actor_id: Optional[str] = None,
) -> ResultEnvelope:
    lifecycle = _lifecycle(db, kind)
    payload = validate_request(BookingCreate, payload, "Invalid booking data")

    result = lifecycle.create_booking(payload, actor_id=actor_id)
    booking = BookingResponse.model_validate(lifecycle.get_booking(result.booking_id))
    return ResultEnvelope.success(
        "Booking created", {**result.to_dict(), "booking": booking.model_dump(mode="json")}
    )


@envelope
def assign_provider(
    db: Session,
    kind: Union[BookingKind, str],
    booking_id: str,
    provider_id: str,
    actor_id: Optional[str] = None,
) -> ResultEnvelope:
    result = _lifecycle(db, kind).assign(booking_id, provider_id, actor_id=actor_id)
    return ResultEnvelope.success("Provider assigned", result.to_dict())


@envelope
def accept_assignment(
    db: Session, kind: Union[BookingKind, str], booking_id: str, provider_id: str
) -> ResultEnvelope:
    result = _lifecycle(db, kind).accept(booking_id, provider_id)
    return ResultEnvelope.success("Booking accepted", result.to_dict())


@envelope
def decline_assignment(
    db: Session, kind: Union[BookingKind, str], booking_id: str, provider_id: str
) -> ResultEnvelope:
    result = _lifecycle(db, kind).decline(booking_id, provider_id)
    return ResultEnvelope.success("Booking declined", result.to_dict())


@envelope
def report_completion(
    db: Session,
    booking_id: str,
    settled_amount: Union[CompletionReport, Decimal, float, str],
    provider_id: Optional[str] = None,
) -> ResultEnvelope:
    if not isinstance(settled_amount, CompletionReport):
        settled_amount = {"settled_amount": settled_amount}
    report = validate_request(CompletionReport, settled_amount, "Invalid completion report")

    lifecycle = _lifecycle(db, BookingKind.SERVICE)
    result = lifecycle.report_completion(
        booking_id, report.settled_amount, provider_id=provider_id
    )
    return ResultEnvelope.success("Completion reported", result.to_dict())


@envelope
def confirm_completion(db: Session, booking_id: str) -> ResultEnvelope:
    result = _lifecycle(db, BookingKind.SERVICE).confirm_completion(booking_id)
    return ResultEnvelope.success("Booking completed", result.to_dict())


@envelope
def cancel(
    db: Session,
    kind: Union[BookingKind, str],
    booking_id: str,
    reason: str,
    provider_id: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> ResultEnvelope:
    result = _lifecycle(db, kind).cancel(
        booking_id, reason, provider_id=provider_id, actor_id=actor_id
    )
    return ResultEnvelope.success("Booking canceled", result.to_dict())


@envelope
def list_notifications(
    db: Session,
    audience: Union[Audience, str],
    subject_id: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> ResultEnvelope:
    service = NotificationService(db)
    resolved = _audience(audience)
    rows = service.list_notifications(resolved, subject_id, limit=limit, offset=offset)
    listing = NotificationListResponse(
        notifications=[NotificationResponse.model_validate(row) for row in rows],
        total=service.count_active(resolved, subject_id),
    )
    return ResultEnvelope.success("Notifications retrieved", listing.model_dump(mode="json"))


@envelope
def dismiss_notification(
    db: Session, notification_id: str, audience: Union[Audience, str]
) -> ResultEnvelope:
    resolved = _audience(audience)
    changed = NotificationService(db).hide_by_id(notification_id, resolved)
    return ResultEnvelope.success(
        "Notification dismissed",
        {"notification_id": notification_id, "audience": resolved.value, "changed": changed},
    )
