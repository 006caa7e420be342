from datetime import date, timedelta

from sqlalchemy import delete, select

from booking_engine.domain.mirror import PaymentRecordStatus, TransactionStatus
from booking_engine.domain.state_machine import PaymentStatus
from booking_engine.infrastructure.db.models import Booking, Event, Payment, Transaction
from booking_engine.infrastructure.db.session import get_db_session, init_db

DEMO_ORGANIZER_ID = "organizer-demo"


def _day(days_from_now: int) -> date:
    return date.today() + timedelta(days=days_from_now)


EVENT_DEFS = [
    {
        "title": "Manila Jazz Night",
        "date": _day(10),
        "time": "19:30",
        "capacity": 3,
        "bookings": [
            ("user-ana", "ana@example.com", 150000),
            ("user-ben", "ben@example.com", 150000),
            ("user-cora", "cora@example.com", 150000),
            ("user-dan", "dan@example.com", 150000),
        ],
    },
    {
        "title": "Community Cleanup Drive",
        "date": _day(5),
        "time": "08:00",
        "capacity": None,
        "bookings": [
            ("user-ana", "ana@example.com", 0),
        ],
    },
]


def seed_events(db) -> None:
    for item in EVENT_DEFS:
        existing = db.execute(
            select(Event).where(Event.title == item["title"])
        ).scalar_one_or_none()
        if existing:
            booking_ids = select(Booking.id).where(Booking.event_id == existing.id)
            db.execute(delete(Transaction).where(Transaction.booking_id.in_(booking_ids)))
            db.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
            db.execute(delete(Booking).where(Booking.event_id == existing.id))
            db.delete(existing)
            db.flush()

        event = Event(
            organizer_id=DEMO_ORGANIZER_ID,
            title=item["title"],
            date=item["date"],
            time=item["time"],
            capacity=item["capacity"],
            available_tickets=item["capacity"],
        )
        db.add(event)
        db.flush()

        for user_id, email, amount in item["bookings"]:
            booking = Booking(
                event_id=event.id,
                user_id=user_id,
                email=email,
                payment_status=PaymentStatus.PENDING,
            )
            db.add(booking)
            db.flush()
            db.add(
                Transaction(
                    booking_id=booking.id,
                    amount=amount,
                    status=TransactionStatus.PENDING,
                )
            )
            db.add(Payment(booking_id=booking.id, status=PaymentRecordStatus.PENDING))


def main() -> None:
    init_db()
    with get_db_session() as db:
        seed_events(db)
    print("Seed complete: Manila Jazz Night (capacity 3) and Community Cleanup Drive added.")


if __name__ == "__main__":
    main()
