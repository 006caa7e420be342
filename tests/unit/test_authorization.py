from types import SimpleNamespace

import pytest

from booking_engine.domain.authorization import (
    Actor,
    Operation,
    Role,
    authorize,
    can_cancel_booking,
    can_check_in,
    can_resolve_payment,
    can_view_ticket,
)
from booking_engine.domain.exceptions import ForbiddenError

EVENT = SimpleNamespace(id="event-1", organizer_id="org-7")
BOOKING = SimpleNamespace(id="booking-1", user_id="user-1", email="Guest@Example.com")


def test_admin_may_do_everything():
    admin = Actor(id="admin", role=Role.ADMIN)
    for operation in Operation:
        authorize(operation, admin, BOOKING, EVENT)


def test_organizer_matches_on_user_id_or_affiliation():
    by_user_id = Actor(id="org-7", role=Role.ORGANIZER)
    by_affiliation = Actor(id="someone", role=Role.ORGANIZER, organizer_id="org-7")
    unrelated = Actor(id="someone", role=Role.ORGANIZER, organizer_id="org-8")

    assert can_resolve_payment(by_user_id, BOOKING, EVENT)
    assert can_resolve_payment(by_affiliation, BOOKING, EVENT)
    assert not can_resolve_payment(unrelated, BOOKING, EVENT)


def test_plain_user_cannot_resolve_even_with_matching_id():
    # Role matters, not only the id.
    user = Actor(id="org-7", role=Role.USER)
    assert not can_resolve_payment(user, BOOKING, EVENT)


def test_event_without_organizer_is_owned_by_nobody():
    event = SimpleNamespace(id="event-2", organizer_id=None)
    organizer = Actor(id="org-7", role=Role.ORGANIZER)
    assert not can_resolve_payment(organizer, BOOKING, event)


def test_only_owner_or_admin_may_cancel():
    assert can_cancel_booking(Actor(id="user-1", role=Role.USER), BOOKING, EVENT)
    assert not can_cancel_booking(Actor(id="user-2", role=Role.USER), BOOKING, EVENT)
    # Owning the event does not allow cancelling someone else's booking.
    assert not can_cancel_booking(Actor(id="org-7", role=Role.ORGANIZER), BOOKING, EVENT)


def test_ticket_visible_to_booking_email_owner():
    by_email = Actor(id="user-5", role=Role.USER, email=" guest@example.com ")
    assert can_view_ticket(by_email, BOOKING, EVENT)
    assert not can_view_ticket(Actor(id="user-5", role=Role.USER), BOOKING, EVENT)


def test_check_in_requires_event_ownership():
    assert can_check_in(Actor(id="org-7", role=Role.ORGANIZER), None, EVENT)
    assert not can_check_in(Actor(id="user-1", role=Role.USER), BOOKING, EVENT)


@pytest.mark.parametrize(
    "operation, message",
    [
        (Operation.RESOLVE_PAYMENT, "Forbidden - You don't own this event"),
        (Operation.CANCEL_BOOKING, "Forbidden - You don't have permission to cancel this booking"),
    ],
)
def test_denial_raises_forbidden(operation, message):
    stranger = Actor(id="user-9", role=Role.USER)
    with pytest.raises(ForbiddenError) as excinfo:
        authorize(operation, stranger, BOOKING, EVENT)
    assert excinfo.value.status_code == 403
    assert excinfo.value.message == message
