import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from booking_engine.domain.authorization import Actor, Operation, authorize
from booking_engine.domain.exceptions import NotFoundError, TicketStateError
from booking_engine.domain.tickets import (
    TicketStatus,
    build_qr_payload,
    ensure_can_check_in,
    generate_ticket_number,
)
from booking_engine.infrastructure.db.models import Event, Ticket
from booking_engine.infrastructure.repositories.booking_repository import BookingRepository
from booking_engine.infrastructure.repositories.event_repository import EventRepository
from booking_engine.infrastructure.repositories.ticket_repository import TicketRepository

logger = logging.getLogger(__name__)

MAX_ISSUE_ATTEMPTS = 5


@dataclass
class TicketDetails:
    ticket: Ticket
    event: Event


class TicketService:
    """Issues, looks up and checks in tickets."""

    def __init__(self, db: Session):
        self.db = db
        self.ticket_repository = TicketRepository(db)
        self.booking_repository = BookingRepository(db)
        self.event_repository = EventRepository(db)

    def issue_ticket(self, booking_id: str) -> Ticket:
        """
        Returns the booking's ticket, creating it on first call.

        A concurrent issuer losing the race on the booking_id unique
        constraint gets the winner's row back.
        """
        existing = self.ticket_repository.get_by_booking_id(booking_id)
        if existing:
            return existing

        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            ticket_number = generate_ticket_number()
            ticket = self.ticket_repository.try_create(
                booking_id=booking.id,
                event_id=booking.event_id,
                ticket_number=ticket_number,
                qr_payload=build_qr_payload(ticket_number, booking.id),
            )
            if ticket:
                logger.info(
                    "Issued ticket %s for booking_id=%s",
                    ticket.ticket_number,
                    booking.id,
                )
                return ticket

            existing = self.ticket_repository.get_by_booking_id(booking_id)
            if existing:
                return existing

            logger.warning(
                "Ticket number collision (attempt %s/%s) for booking_id=%s",
                attempt,
                MAX_ISSUE_ATTEMPTS,
                booking_id,
            )

        raise RuntimeError(
            f"Could not allocate a unique ticket number after {MAX_ISSUE_ATTEMPTS} attempts"
        )

    def get_ticket_for_booking(self, booking_id: str, actor: Actor) -> TicketDetails:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        event = self.event_repository.get_by_id(booking.event_id)
        if not event:
            raise NotFoundError("Event not found")

        authorize(Operation.VIEW_TICKET, actor, booking, event)

        ticket = self.ticket_repository.get_by_booking_id(booking.id)
        if not ticket:
            raise NotFoundError("Ticket not found for this booking")

        return TicketDetails(ticket=ticket, event=event)

    def check_in(self, ticket_number: str, actor: Actor) -> TicketDetails:
        ticket = self.ticket_repository.get_by_ticket_number(ticket_number)
        if not ticket:
            raise NotFoundError("Ticket not found")

        event = self.event_repository.get_by_id(ticket.event_id)
        if not event:
            raise NotFoundError("Event not found for this ticket")

        # The booking may already be gone; check-in only needs the event.
        booking = self.booking_repository.get_by_id(ticket.booking_id)
        authorize(Operation.CHECK_IN, actor, booking, event)
        ensure_can_check_in(ticket.status)

        checked_in = self.ticket_repository.compare_and_set_status(
            ticket,
            expected=TicketStatus.ACTIVE,
            new_status=TicketStatus.USED,
            checked_in_at=datetime.now(timezone.utc),
            checked_in_by=actor.id,
        )
        if not checked_in:
            # Changed since it was read: used by another check-in or cancelled.
            ensure_can_check_in(ticket.status)
            raise TicketStateError("Ticket is no longer active")

        logger.info("Checked in ticket %s by actor_id=%s", ticket.ticket_number, actor.id)
        return TicketDetails(ticket=ticket, event=event)

    def verify(self, ticket_number: str) -> TicketDetails:
        ticket = self.ticket_repository.get_by_ticket_number(ticket_number)
        if not ticket:
            raise NotFoundError("Ticket not found")

        event = self.event_repository.get_by_id(ticket.event_id)
        if not event:
            raise NotFoundError("Event not found for this ticket")

        return TicketDetails(ticket=ticket, event=event)
