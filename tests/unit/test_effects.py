from datetime import date

from booking_engine.domain.effects import (
    EmailEffect,
    EventSummary,
    NotificationEffect,
    cancellation_effects,
    confirmation_effects,
    format_date_readable,
    format_time_12_hour,
    rejection_effects,
)

EVENT = EventSummary(id="event-1", title="Harbour Lights", date=date(2026, 12, 5), time="19:30")


def test_formatters():
    assert format_date_readable(date(2026, 12, 5)) == "December 5, 2026"
    assert format_time_12_hour("19:30") == "7:30 PM"
    assert format_time_12_hour("00:05") == "12:05 AM"
    assert format_time_12_hour("12:00") == "12:00 PM"
    assert format_time_12_hour("late") == "late"


def test_confirmation_effects_reference_the_ticket():
    notification, email = confirmation_effects(
        booking_id="b1",
        user_id="u1",
        email="u1@example.com",
        event=EVENT,
        ticket_number="TKT-20261205-ABCDEF12",
    )

    assert isinstance(notification, NotificationEffect)
    assert notification.type == "user_booking_confirmation"
    assert notification.link == "/my-ticket?bookingId=b1"
    assert notification.message.endswith("Ticket: TKT-20261205-ABCDEF12")
    assert notification.metadata == {
        "eventId": "event-1",
        "bookingId": "b1",
        "paymentStatus": "confirmed",
    }

    assert isinstance(email, EmailEffect)
    assert email.to == "u1@example.com"
    assert email.template == "booking_confirmation.html"
    assert email.context["event_time"] == "7:30 PM"


def test_rejection_effects():
    notification, email = rejection_effects(
        booking_id="b1", user_id="u1", email="u1@example.com", event=EVENT
    )
    assert notification.title == "Booking Payment Rejected"
    assert notification.link == "/bookings"
    assert email.subject == "Payment Rejected: Harbour Lights"


def test_cancellation_message_mentions_refund_only_when_refunded():
    refunded = cancellation_effects("b1", "u1", "u1@example.com", EVENT, refunded=True)
    unpaid = cancellation_effects("b1", "u1", "u1@example.com", EVENT, refunded=False)

    assert refunded[0].message.endswith(". Refund will be processed.")
    assert unpaid[0].message == "Your booking for Harbour Lights has been cancelled."
    assert refunded[1].context["refunded"] is True


def test_no_email_effect_without_address():
    effects = rejection_effects(booking_id="b1", user_id="u1", email=None, event=EVENT)
    assert [type(effect) for effect in effects] == [NotificationEffect]
