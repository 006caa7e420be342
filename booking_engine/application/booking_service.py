import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from booking_engine.application.ticket_service import TicketService
from booking_engine.domain.authorization import Actor, Operation, authorize
from booking_engine.domain.effects import (
    Effect,
    EventSummary,
    cancellation_effects,
    confirmation_effects,
    rejection_effects,
)
from booking_engine.domain.event_time import has_started
from booking_engine.domain.exceptions import (
    EventAlreadyStartedError,
    InvalidStateTransitionError,
    NotFoundError,
)
from booking_engine.domain.mirror import mirror_outcome
from booking_engine.domain.state_machine import (
    BookingStateMachine,
    Cancelled,
    Confirmed,
    PaymentStatus,
)
from booking_engine.infrastructure.db.models import Booking, Event
from booking_engine.infrastructure.repositories.booking_repository import BookingRepository
from booking_engine.infrastructure.repositories.capacity_ledger import CapacityLedger
from booking_engine.infrastructure.repositories.event_repository import EventRepository
from booking_engine.infrastructure.repositories.ticket_repository import TicketRepository
from booking_engine.infrastructure.repositories.transaction_repository import (
    TransactionRepository,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResolutionResult:
    booking_id: str
    payment_status: PaymentStatus
    ticket_number: str | None = None
    effects: list[Effect] = field(default_factory=list)


@dataclass
class CancellationResult:
    booking_id: str
    refunded: bool
    effects: list[Effect] = field(default_factory=list)


class BookingService:
    """
    Application service coordinating the booking lifecycle.

    The only code allowed to change a booking's payment status. Each
    operation runs its writes inside one SAVEPOINT, so a failure part
    way through leaves booking, seats, ticket and mirrors untouched.
    Effects are returned, never performed here.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = _utc_now):
        self.db = db
        self.clock = clock
        self.booking_repository = BookingRepository(db)
        self.event_repository = EventRepository(db)
        self.capacity_ledger = CapacityLedger(db)
        self.ticket_repository = TicketRepository(db)
        self.transaction_repository = TransactionRepository(db)
        self.ticket_service = TicketService(db)

    def resolve_payment(
        self,
        booking_id: str,
        actor: Actor,
        decision: str | PaymentStatus,
    ) -> ResolutionResult:
        decision = BookingStateMachine.parse_decision(decision)

        booking = self._get_booking(booking_id)
        event = self._get_event(booking)
        authorize(Operation.RESOLVE_PAYMENT, actor, booking, event)

        outcome = BookingStateMachine.resolve(booking.id, booking.payment_status, decision)
        summary = _summarize(event)
        ticket_number = None

        with self.db.begin_nested():
            if not self.booking_repository.compare_and_set_status(
                booking,
                expected=PaymentStatus.PENDING,
                new_status=decision,
            ):
                self._raise_lost_race(booking.id, decision)

            if isinstance(outcome, Confirmed):
                self.capacity_ledger.reserve_seat(event)
                ticket_number = self.ticket_service.issue_ticket(booking.id).ticket_number

            self.transaction_repository.apply_mirror(
                booking.id,
                mirror_outcome(outcome),
                self.clock(),
            )

        if isinstance(outcome, Confirmed):
            effects = confirmation_effects(
                booking_id=booking.id,
                user_id=booking.user_id,
                email=booking.email,
                event=summary,
                ticket_number=ticket_number,
            )
        else:
            effects = rejection_effects(
                booking_id=booking.id,
                user_id=booking.user_id,
                email=booking.email,
                event=summary,
            )

        logger.info(
            "Booking %s payment %s by actor_id=%s (event_id=%s, available_tickets=%s)",
            booking.id,
            decision.value,
            actor.id,
            event.id,
            event.available_tickets,
        )
        return ResolutionResult(
            booking_id=booking.id,
            payment_status=decision,
            ticket_number=ticket_number,
            effects=effects,
        )

    def cancel_booking(
        self,
        booking_id: str,
        actor: Actor,
    ) -> CancellationResult:
        booking = self.booking_repository.lock_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        event = self._get_event(booking)
        authorize(Operation.CANCEL_BOOKING, actor, booking, event)

        outcome = BookingStateMachine.cancel(booking.id, booking.payment_status)

        now = self.clock()
        if has_started(event.date, event.time, now):
            raise EventAlreadyStartedError("Cannot cancel booking for past events")

        summary = _summarize(event)
        user_id, email = booking.user_id, booking.email

        with self.db.begin_nested():
            refunded = self._compensate(booking, event, outcome, now)
            if not self.booking_repository.delete(booking):
                raise NotFoundError("Booking not found")

        logger.info(
            "Booking %s cancelled by actor_id=%s (was_confirmed=%s, refunded=%s)",
            booking_id,
            actor.id,
            outcome.was_confirmed,
            refunded,
        )
        return CancellationResult(
            booking_id=booking_id,
            refunded=refunded,
            effects=cancellation_effects(
                booking_id=booking_id,
                user_id=user_id,
                email=email,
                event=summary,
                refunded=refunded,
            ),
        )

    def _compensate(
        self,
        booking: Booking,
        event: Event,
        outcome: Cancelled,
        now: datetime,
    ) -> bool:
        transaction = self.transaction_repository.get_transaction(booking.id)
        mirror = mirror_outcome(
            outcome,
            transaction_status=transaction.status if transaction else None,
            transaction_amount=transaction.amount if transaction else 0,
        )
        self.transaction_repository.apply_mirror(booking.id, mirror, now)

        ticket = self.ticket_repository.get_by_booking_id(booking.id)
        if ticket:
            self.ticket_repository.mark_cancelled(ticket)

        # Pending bookings never took a seat.
        if outcome.was_confirmed:
            self.capacity_ledger.release_seat(event)

        return transaction is not None and mirror.record_refund

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _get_event(self, booking: Booking) -> Event:
        event = self.event_repository.get_by_id(booking.event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    def _raise_lost_race(self, booking_id: str, decision: PaymentStatus) -> None:
        current = self.booking_repository.get_status(booking_id)
        if current is None:
            raise NotFoundError("Booking not found")
        raise InvalidStateTransitionError(
            from_state=current.value,
            to_state=decision.value,
        )


def _summarize(event: Event) -> EventSummary:
    return EventSummary(
        id=event.id,
        title=event.title,
        date=event.date,
        time=event.time,
    )
