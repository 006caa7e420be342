# booking_engine/domain/effects.py

"""
Descriptions of the best-effort work that follows a lifecycle
transition. Builders here only produce values; executing them is the
job of the side-effect dispatcher.
"""

from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class EventSummary:
    id: str
    title: str
    date: date_type
    time: str


@dataclass(frozen=True)
class NotificationEffect:
    user_id: str
    type: str
    title: str
    message: str
    link: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmailEffect:
    to: str
    subject: str
    template: str
    context: Dict[str, Any] = field(default_factory=dict)


Effect = Union[NotificationEffect, EmailEffect]


def format_date_readable(value: date_type) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_time_12_hour(value: str) -> str:
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        return value
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{hour}:{parsed.minute:02d} {suffix}"


def _email_context(event: EventSummary, **extra: Any) -> Dict[str, Any]:
    context = {
        "event_title": event.title,
        "event_date": format_date_readable(event.date),
        "event_time": format_time_12_hour(event.time),
    }
    context.update(extra)
    return context


def confirmation_effects(
    booking_id: str,
    user_id: str,
    email: Optional[str],
    event: EventSummary,
    ticket_number: Optional[str],
) -> List[Effect]:
    message = f"Your booking for {event.title} has been confirmed."
    if ticket_number:
        message += f" Ticket: {ticket_number}"

    effects: List[Effect] = [
        NotificationEffect(
            user_id=user_id,
            type="user_booking_confirmation",
            title="Booking Confirmed",
            message=message,
            link=f"/my-ticket?bookingId={booking_id}",
            metadata={
                "eventId": event.id,
                "bookingId": booking_id,
                "paymentStatus": "confirmed",
            },
        )
    ]
    if email:
        effects.append(
            EmailEffect(
                to=email,
                subject=f"Booking Confirmed: {event.title}",
                template="booking_confirmation.html",
                context=_email_context(event, ticket_number=ticket_number or ""),
            )
        )
    return effects


def rejection_effects(
    booking_id: str,
    user_id: str,
    email: Optional[str],
    event: EventSummary,
) -> List[Effect]:
    effects: List[Effect] = [
        NotificationEffect(
            user_id=user_id,
            type="other",
            title="Booking Payment Rejected",
            message=(
                f"Your payment for {event.title} has been rejected. "
                "Please contact support if you believe this is an error."
            ),
            link="/bookings",
            metadata={
                "eventId": event.id,
                "bookingId": booking_id,
                "paymentStatus": "rejected",
            },
        )
    ]
    if email:
        effects.append(
            EmailEffect(
                to=email,
                subject=f"Payment Rejected: {event.title}",
                template="payment_rejected.html",
                context=_email_context(event),
            )
        )
    return effects


def cancellation_effects(
    booking_id: str,
    user_id: str,
    email: Optional[str],
    event: EventSummary,
    refunded: bool,
) -> List[Effect]:
    suffix = ". Refund will be processed." if refunded else "."
    effects: List[Effect] = [
        NotificationEffect(
            user_id=user_id,
            type="booking_cancelled",
            title="Booking Cancelled",
            message=f"Your booking for {event.title} has been cancelled{suffix}",
            link="/bookings",
            metadata={
                "eventId": event.id,
                "bookingId": booking_id,
            },
        )
    ]
    if email:
        effects.append(
            EmailEffect(
                to=email,
                subject=f"Booking Cancelled: {event.title}",
                template="booking_cancellation.html",
                context=_email_context(event, refunded=refunded),
            )
        )
    return effects
