# booking_engine/domain/authorization.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from booking_engine.domain.exceptions import ForbiddenError


class Role(str, Enum):
    USER = "user"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class Operation(str, Enum):
    RESOLVE_PAYMENT = "resolve_payment"
    CANCEL_BOOKING = "cancel_booking"
    VIEW_TICKET = "view_ticket"
    CHECK_IN = "check_in"


@dataclass(frozen=True)
class Actor:
    """Identity resolved upstream. Trusted as given."""

    id: str
    role: Role
    organizer_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def owns_event(actor: Actor, event: Any) -> bool:
    """
    An organizer owns an event when the event's organizer_id points at
    either the organizer's user id or their organizer affiliation.
    """
    if actor.role is not Role.ORGANIZER or not event.organizer_id:
        return False

    event_organizer_id = str(event.organizer_id)
    if event_organizer_id == str(actor.id):
        return True
    return actor.organizer_id is not None and event_organizer_id == str(actor.organizer_id)


def owns_booking(actor: Actor, booking: Any) -> bool:
    return str(booking.user_id) == str(actor.id)


def can_resolve_payment(actor: Actor, booking: Any, event: Any) -> bool:
    return actor.is_admin or owns_event(actor, event)


def can_cancel_booking(actor: Actor, booking: Any, event: Any) -> bool:
    return actor.is_admin or owns_booking(actor, booking)


def can_view_ticket(actor: Actor, booking: Any, event: Any) -> bool:
    if actor.is_admin or owns_booking(actor, booking) or owns_event(actor, event):
        return True
    return (
        actor.email is not None
        and booking.email is not None
        and actor.email.strip().lower() == booking.email.strip().lower()
    )


def can_check_in(actor: Actor, booking: Any, event: Any) -> bool:
    return actor.is_admin or owns_event(actor, event)


_POLICIES: Dict[Operation, Callable[[Actor, Any, Any], bool]] = {
    Operation.RESOLVE_PAYMENT: can_resolve_payment,
    Operation.CANCEL_BOOKING: can_cancel_booking,
    Operation.VIEW_TICKET: can_view_ticket,
    Operation.CHECK_IN: can_check_in,
}

_DENIAL_MESSAGES: Dict[Operation, str] = {
    Operation.RESOLVE_PAYMENT: "Forbidden - You don't own this event",
    Operation.CANCEL_BOOKING: "Forbidden - You don't have permission to cancel this booking",
    Operation.VIEW_TICKET: "You don't have access to this ticket",
    Operation.CHECK_IN: "You don't have permission to check in tickets for this event",
}


def is_allowed(operation: Operation, actor: Actor, booking: Any, event: Any) -> bool:
    return _POLICIES[operation](actor, booking, event)


def authorize(operation: Operation, actor: Actor, booking: Any, event: Any) -> None:
    """Raises ForbiddenError unless the actor may perform the operation."""
    if not is_allowed(operation, actor, booking, event):
        raise ForbiddenError(_DENIAL_MESSAGES[operation])
