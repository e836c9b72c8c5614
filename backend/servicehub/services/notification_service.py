# backend/servicehub/services/notification_service.py
"""
Notification fan-out and per-audience visibility.

Lifecycle transitions call ``emit`` inside their own unit of work; it only
flushes. Dismissal operations (``hide_*``) are units of work of their own and
commit. A dismissal only ever touches the dismissing audience's flag.
"""

import logging
from typing import Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.enums import Audience, BookingKind, Visibility
from ..core.exceptions import NotFoundException, ValidationException
from ..models.notification import BOOKING_COLUMNS, VISIBILITY_COLUMNS, Notification
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .transitions import descriptions_for, known_descriptions

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Writes notification rows and manages each audience's view of them."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_notification_repository(db)

    def emit(
        self,
        actor_id: str,
        provider_id: Optional[str],
        booking_id: str,
        kind: BookingKind,
        description: str,
        visibility: Mapping[Audience, Visibility],
        customer_id: Optional[str] = None,
    ) -> Notification:
        """
        Insert one notification row.

        Args:
            actor_id: User who caused the transition
            provider_id: Provider the row concerns, if any
            booking_id: Booking the row is about
            kind: Which booking table ``booking_id`` refers to
            description: One of the known descriptions for ``kind``
            visibility: Initial flag per audience; missing audiences get ``none``
            customer_id: Booking's customer, scopes customer reads

        Raises:
            ValidationException: Unknown description, a ``hidden`` initial flag,
                or a missing actor/booking id
        """
        kind = BookingKind(kind)
        if not actor_id or not booking_id:
            raise ValidationException("actor_id and booking_id are required")
        if description not in known_descriptions(kind):
            raise ValidationException(
                f"Unknown notification description for {kind.value} bookings",
                details={"description": description},
            )

        flags = {audience: Visibility.NONE for audience in Audience}
        for audience, flag in visibility.items():
            flags[Audience(audience)] = Visibility(flag)
        if Visibility.HIDDEN in flags.values():
            raise ValidationException("A notification cannot be created hidden")

        fields = {
            "actor_id": actor_id,
            "customer_id": customer_id,
            "provider_id": provider_id,
            "description": description,
            BOOKING_COLUMNS[kind]: booking_id,
        }
        fields.update({VISIBILITY_COLUMNS[audience]: flag for audience, flag in flags.items()})
        notification = self.repository.create_notification(**fields)
        self.logger.debug(f"Emitted notification {notification.id}: {description}")
        return notification

    # Reads

    def list_notifications(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Notification]:
        """Active notifications for ``audience`` (scoped to ``subject_id``), newest first."""
        audience = self._check_scope(audience, subject_id)
        return self.repository.list_active(
            audience,
            subject_id=subject_id,
            descriptions=descriptions_for(audience),
            limit=max(1, limit),
            offset=max(0, offset),
        )

    def count_active(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> int:
        audience = self._check_scope(audience, subject_id)
        return self.repository.count_active(
            audience, subject_id, self._descriptions(audience, descriptions)
        )

    # Dismissals

    @BaseService.measure_operation("hide_oldest_active")
    def hide_oldest_active(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> Optional[str]:
        """
        Hide the oldest active notification for ``audience``.

        Returns the hidden row's id, or None when nothing was active. A row
        hidden by someone else between the lookup and the update is skipped
        in favour of the next oldest one.
        """
        audience = self._check_scope(audience, subject_id)
        allowed = self._descriptions(audience, descriptions)
        with self.transaction():
            oldest = self.repository.find_oldest_active(audience, subject_id, allowed)
            while oldest is not None:
                if self.repository.hide(oldest.id, audience):
                    return oldest.id
                self.logger.debug(f"Notification {oldest.id} already hidden, trying next")
                oldest = self.repository.find_oldest_active(audience, subject_id, allowed)
            return None

    @BaseService.measure_operation("hide_all")
    def hide_all(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> int:
        audience = self._check_scope(audience, subject_id)
        with self.transaction():
            hidden = self.repository.hide_all(
                audience, subject_id, self._descriptions(audience, descriptions)
            )
        self.logger.info(f"Hid {hidden} {audience.value} notification(s)")
        return hidden

    @BaseService.measure_operation("hide_by_id")
    def hide_by_id(self, notification_id: str, audience: Audience) -> bool:
        """
        Hide one notification for ``audience``.

        Idempotent: returns True when the flag changed, False when it was
        already hidden or never visible to that audience.

        Raises:
            NotFoundException: No notification with that id
        """
        audience = Audience(audience)
        with self.transaction():
            if self.repository.get_by_id(notification_id) is None:
                raise NotFoundException(
                    "Notification not found", details={"notification_id": notification_id}
                )
            return self.repository.hide(notification_id, audience)

    def _check_scope(self, audience: Audience, subject_id: Optional[str]) -> Audience:
        audience = Audience(audience)
        if audience != Audience.ADMIN and not subject_id:
            raise ValidationException(
                f"A subject id is required for {audience.value} notifications"
            )
        return audience

    @staticmethod
    def _descriptions(audience: Audience, descriptions: Optional[Iterable[str]]) -> List[str]:
        allowed = descriptions_for(audience)
        if descriptions is None:
            return sorted(allowed)
        return [d for d in descriptions if d in allowed]
