# booking_engine/infrastructure/repositories/ticket_repository.py

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_engine.domain.tickets import TicketStatus
from booking_engine.infrastructure.db.models import Ticket


class TicketRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_booking_id(self, booking_id: str) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.booking_id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_ticket_number(self, ticket_number: str) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.ticket_number == ticket_number)
        return self.db.execute(stmt).scalar_one_or_none()

    def try_create(
        self,
        booking_id: str,
        event_id: str,
        ticket_number: str,
        qr_payload: str,
    ) -> Ticket | None:
        """
        INSERT inside a SAVEPOINT.

        Returns None when a unique constraint (booking_id or
        ticket_number) rejected the row; the outer transaction is intact.
        """
        ticket = Ticket(
            booking_id=booking_id,
            event_id=event_id,
            ticket_number=ticket_number,
            qr_payload=qr_payload,
            status=TicketStatus.ACTIVE,
        )
        try:
            with self.db.begin_nested():
                self.db.add(ticket)
        except IntegrityError:
            return None
        return ticket

    def compare_and_set_status(
        self,
        ticket: Ticket,
        expected: TicketStatus,
        new_status: TicketStatus,
        **values,
    ) -> bool:
        """
        UPDATE tickets ... WHERE id = :id AND status = :expected

        Returns False when the ticket had already left `expected`.
        The loaded ticket is refreshed either way.
        """
        stmt = (
            update(Ticket)
            .where(Ticket.id == ticket.id)
            .where(Ticket.status == expected)
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        applied = self.db.execute(stmt).rowcount == 1
        self.db.refresh(ticket)
        return applied

    def mark_cancelled(self, ticket: Ticket) -> bool:
        stmt = (
            update(Ticket)
            .where(Ticket.id == ticket.id)
            .where(Ticket.status != TicketStatus.CANCELLED)
            .values(status=TicketStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.refresh(ticket)
        return changed
