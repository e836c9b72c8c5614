"""
Lifecycle transitions and the notifications they produce.

Each ``Transition`` member carries its allowed source statuses, its target
status, whether the caller must be the assigned provider, and whether it exists
for service bookings only. ``Transition.notification_for`` returns the template
(description plus initial per-audience visibility) a transition emits, or None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from ..core.enums import Audience, BookingKind, BookingStatus, Visibility


class NotificationEvent(str, Enum):
    CREATED = "created"
    ASSIGNED = "assigned"
    CANCELED = "canceled"  # known description; no transition emits it
    COMPLETED = "completed"  # cancel while work was in progress closes the job out


DESCRIPTIONS: Dict[BookingKind, Dict[NotificationEvent, str]] = {
    BookingKind.SERVICE: {
        NotificationEvent.CREATED: "New service booking",
        NotificationEvent.ASSIGNED: "You have a new service request",
        NotificationEvent.CANCELED: "Service booking is canceled",
        NotificationEvent.COMPLETED: "Service booking is completed",
    },
    BookingKind.SUBSCRIPTION: {
        NotificationEvent.CREATED: "New subscription service booking",
        NotificationEvent.ASSIGNED: "You have a new subscription service request",
        NotificationEvent.CANCELED: "Subscription service is canceled",
        NotificationEvent.COMPLETED: "Subscription service is completed",
    },
}

AUDIENCE_EVENTS: Dict[Audience, FrozenSet[NotificationEvent]] = {
    Audience.ADMIN: frozenset(
        {NotificationEvent.CREATED, NotificationEvent.CANCELED, NotificationEvent.COMPLETED}
    ),
    Audience.PROVIDER: frozenset(
        {NotificationEvent.ASSIGNED, NotificationEvent.CANCELED, NotificationEvent.COMPLETED}
    ),
    Audience.CUSTOMER: frozenset({NotificationEvent.COMPLETED}),
}


def known_descriptions(kind: BookingKind) -> FrozenSet[str]:
    return frozenset(DESCRIPTIONS[BookingKind(kind)].values())


def descriptions_for(audience: Audience) -> FrozenSet[str]:
    """Every description (both booking kinds) the audience's views list."""
    events = AUDIENCE_EVENTS[Audience(audience)]
    return frozenset(
        description
        for per_kind in DESCRIPTIONS.values()
        for event, description in per_kind.items()
        if event in events
    )


@dataclass(frozen=True)
class NotificationTemplate:
    description: str
    admin: Visibility = Visibility.NONE
    provider: Visibility = Visibility.NONE
    customer: Visibility = Visibility.NONE

    @property
    def visibility(self) -> Dict[Audience, Visibility]:
        return {
            Audience.ADMIN: self.admin,
            Audience.PROVIDER: self.provider,
            Audience.CUSTOMER: self.customer,
        }


class Transition(Enum):
    """Lifecycle transitions: (name, sources, target, requires_assignee, service_only)."""

    CREATE = ("create", frozenset(), BookingStatus.PENDING, False, False)
    ASSIGN = ("assign", frozenset({BookingStatus.PENDING}), BookingStatus.WAITING, False, False)
    ACCEPT = ("accept", frozenset({BookingStatus.WAITING}), BookingStatus.PROCESS, True, False)
    DECLINE = ("decline", frozenset({BookingStatus.WAITING}), BookingStatus.PENDING, True, False)
    REPORT_COMPLETION = (
        "report_completion",
        frozenset({BookingStatus.PROCESS}),
        BookingStatus.REQUEST,
        False,
        True,
    )
    CONFIRM_COMPLETION = (
        "confirm_completion",
        frozenset({BookingStatus.REQUEST}),
        BookingStatus.COMPLETE,
        False,
        True,
    )
    CANCEL = ("cancel", BookingStatus.active(), BookingStatus.CANCEL, False, False)

    def __init__(
        self,
        label: str,
        sources: FrozenSet[BookingStatus],
        target: BookingStatus,
        requires_assignee: bool,
        service_only: bool,
    ) -> None:
        self.label = label
        self.sources = sources
        self.target = target
        self.requires_assignee = requires_assignee
        self.service_only = service_only

    def allowed_for(self, kind: BookingKind) -> bool:
        return not self.service_only or BookingKind(kind) == BookingKind.SERVICE

    def notification_for(
        self,
        kind: BookingKind,
        prior: Optional[BookingStatus] = None,
    ) -> Optional[NotificationTemplate]:
        """
        Template emitted by this transition, or None when it is silent.

        ``prior`` is the status the booking left. CANCEL only speaks up when
        it interrupts work in progress.
        """
        descriptions = DESCRIPTIONS[BookingKind(kind)]
        if self is Transition.CREATE:
            return NotificationTemplate(
                descriptions[NotificationEvent.CREATED], admin=Visibility.ACTIVE
            )
        if self is Transition.ASSIGN:
            return NotificationTemplate(
                descriptions[NotificationEvent.ASSIGNED], provider=Visibility.ACTIVE
            )
        if self is Transition.CANCEL and prior == BookingStatus.PROCESS:
            return NotificationTemplate(
                descriptions[NotificationEvent.COMPLETED],
                admin=Visibility.ACTIVE,
                provider=Visibility.ACTIVE,
                customer=Visibility.ACTIVE,
            )
        return None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of an applied transition. Lost races raise instead of returning."""

    kind: BookingKind
    transition: Transition
    booking_id: str
    from_status: Optional[BookingStatus]
    to_status: BookingStatus
    applied: bool = True
    allocation_id: Optional[str] = None
    notification_ids: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": self.applied,
            "kind": self.kind.value,
            "transition": self.transition.label,
            "booking_id": self.booking_id,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "allocation_id": self.allocation_id,
            "notification_ids": list(self.notification_ids),
        }
