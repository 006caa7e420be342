# booking_engine/infrastructure/repositories/event_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.infrastructure.db.models import Event


class EventRepository:
    """Read side of the event store. Seat counts are written by CapacityLedger."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one_or_none()
