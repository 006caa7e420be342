# booking_engine/infrastructure/repositories/capacity_ledger.py

import logging

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from booking_engine.domain.exceptions import CapacityExhaustedError
from booking_engine.infrastructure.db.models import Event

logger = logging.getLogger(__name__)


class CapacityLedger:
    """
    Bounded seat counter per event.

    Every change is one conditional UPDATE, so concurrent confirmations
    for the same event are serialized by the row lock the database takes
    for the statement; there is no read-modify-write in Python.
    Events without a capacity are unlimited and never touched.
    """

    def __init__(self, db: Session):
        self.db = db

    def try_adjust(
        self,
        event_id: str,
        delta: int,
    ) -> bool:
        """
        UPDATE events SET available_tickets = available_tickets + :delta
        WHERE capacity IS NOT NULL
          AND available_tickets + :delta BETWEEN 0 AND capacity

        Returns True when exactly one row changed.
        """
        # An unset counter on a capped event means nothing is sold yet.
        new_value = func.coalesce(Event.available_tickets, Event.capacity) + delta
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.capacity.is_not(None))
            .where(new_value >= 0)
            .where(new_value <= Event.capacity)
            .values(available_tickets=new_value)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def reserve_seat(self, event: Event) -> None:
        if event.capacity is None:
            return

        if not self.try_adjust(event.id, -1):
            logger.warning("Capacity exhausted for event_id=%s", event.id)
            raise CapacityExhaustedError("No tickets available for this event")
        self.db.refresh(event)

    def release_seat(self, event: Event) -> bool:
        if event.capacity is None:
            return False

        released = self.try_adjust(event.id, 1)
        if released:
            self.db.refresh(event)
        else:
            logger.warning(
                "Seat release skipped, event_id=%s already at capacity",
                event.id,
            )
        return released
