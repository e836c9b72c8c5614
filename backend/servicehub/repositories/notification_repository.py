"""Repository for the notification audit trail and per-audience visibility flags."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.enums import Audience, Visibility
from ..core.exceptions import RepositoryException
from ..models.notification import VISIBILITY_COLUMNS, Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """
    Data access for notification rows.

    Each audience reads and mutates only its own visibility column. A
    ``subject_id`` scopes provider reads to ``provider_id`` and customer reads
    to ``customer_id``; admin reads are unscoped.
    """

    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def create_notification(self, **fields: Any) -> Notification:
        return self.create(**fields)

    def _visibility(self, audience: Audience):
        return getattr(Notification, VISIBILITY_COLUMNS[Audience(audience)])

    def _active_query(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> Query:
        audience = Audience(audience)
        query = self._build_query().filter(self._visibility(audience) == Visibility.ACTIVE)
        if subject_id is not None:
            if audience == Audience.PROVIDER:
                query = query.filter(Notification.provider_id == subject_id)
            elif audience == Audience.CUSTOMER:
                query = query.filter(Notification.customer_id == subject_id)
        if descriptions is not None:
            query = query.filter(Notification.description.in_(list(descriptions)))
        return query

    def list_active(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Notification]:
        """Active rows for ``audience``, newest first."""
        query = (
            self._active_query(audience, subject_id, descriptions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self._execute_query(query)

    def count_active(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> int:
        try:
            query = self._active_query(audience, subject_id, descriptions).with_entities(
                func.count(Notification.id)
            )
            return int(query.scalar() or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting active notifications: {str(e)}")
            raise RepositoryException(f"Failed to count notifications: {str(e)}") from e

    def find_oldest_active(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> Optional[Notification]:
        query = self._active_query(audience, subject_id, descriptions).order_by(
            Notification.created_at.asc(), Notification.id.asc()
        )
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding oldest active notification: {str(e)}")
            raise RepositoryException(f"Failed to find notification: {str(e)}") from e

    def hide(self, notification_id: str, audience: Audience) -> bool:
        """
        Flip one row's ``audience`` flag from active to hidden.

        Returns True when the row changed. Rows whose flag is ``none`` or
        already ``hidden`` are left as they are.
        """
        column = self._visibility(audience)
        query = self._build_query().filter(
            Notification.id == notification_id,
            column == Visibility.ACTIVE,
        )
        changed = self._execute_update(query, {column: Visibility.HIDDEN})
        self._expire_cached(notification_id)
        return changed > 0

    def hide_all(
        self,
        audience: Audience,
        subject_id: Optional[str] = None,
        descriptions: Optional[Iterable[str]] = None,
    ) -> int:
        """Hide every active row for ``audience``; returns the number hidden."""
        column = self._visibility(audience)
        ids = [
            row.id
            for row in self._active_query(audience, subject_id, descriptions).with_entities(
                Notification.id
            )
        ]
        if not ids:
            return 0
        query = self._build_query().filter(
            Notification.id.in_(ids),
            column == Visibility.ACTIVE,
        )
        hidden = self._execute_update(query, {column: Visibility.HIDDEN})
        for notification_id in ids:
            self._expire_cached(notification_id)
        return hidden
