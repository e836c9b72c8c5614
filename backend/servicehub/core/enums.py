# backend/servicehub/core/enums.py
"""
Core enums for the ServiceHub booking engine.

All enums persisted to the database inherit from (str, Enum) and store their
lower-case VALUES; see models/base_enum.py.
"""

from enum import Enum
from typing import FrozenSet


class BookingKind(str, Enum):
    """The two booking tables that share one lifecycle."""

    SERVICE = "service"
    SUBSCRIPTION = "subscription"


class BookingStatus(str, Enum):
    """
    Booking lifecycle statuses.

    pending -> waiting -> process -> [request] -> complete, with cancel
    reachable from any non-terminal status. REQUEST is used by service
    bookings only.
    """

    PENDING = "pending"  # Awaiting admin assignment
    WAITING = "waiting"  # Assigned, awaiting provider acceptance
    PROCESS = "process"  # Accepted, work in progress
    REQUEST = "request"  # Provider reported completion, awaiting customer
    COMPLETE = "complete"
    CANCEL = "cancel"

    @classmethod
    def terminal(cls) -> FrozenSet["BookingStatus"]:
        return frozenset({cls.COMPLETE, cls.CANCEL})

    @classmethod
    def active(cls) -> FrozenSet["BookingStatus"]:
        return frozenset(status for status in cls if status not in cls.terminal())

    @classmethod
    def parse(cls, value: "str | BookingStatus") -> "BookingStatus":
        """Resolve user input to a canonical status. Raises ValueError for unknown values."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    @property
    def is_terminal(self) -> bool:
        return self in self.terminal()


class Audience(str, Enum):
    """Roles that can see a notification."""

    ADMIN = "admin"
    PROVIDER = "provider"
    CUSTOMER = "customer"


class Visibility(str, Enum):
    """
    Per-audience notification state.

    NONE: the audience was never meant to see the row.
    ACTIVE: visible and unread.
    HIDDEN: dismissed by that audience.
    """

    NONE = "none"
    ACTIVE = "active"
    HIDDEN = "hidden"
