# booking_engine/infrastructure/repositories/booking_repository.py

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from booking_engine.domain.state_machine import PaymentStatus
from booking_engine.infrastructure.db.models import Booking


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_by_id(self, booking_id: str) -> Booking | None:
        """
        SELECT ... FOR UPDATE
        Holds the row until the surrounding transaction ends.
        """
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_status(self, booking_id: str) -> PaymentStatus | None:
        stmt = select(Booking.payment_status).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def compare_and_set_status(
        self,
        booking: Booking,
        expected: PaymentStatus,
        new_status: PaymentStatus,
    ) -> bool:
        """
        UPDATE ... WHERE payment_status = :expected

        The only write path for payment_status. Returns False when
        another request moved the booking first.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id)
            .where(Booking.payment_status == expected)
            .values(payment_status=new_status)
            .execution_options(synchronize_session=False)
        )
        applied = self.db.execute(stmt).rowcount == 1
        if applied:
            self.db.refresh(booking)
        return applied

    def delete(self, booking: Booking) -> bool:
        result = self.db.execute(
            delete(Booking)
            .where(Booking.id == booking.id)
            .execution_options(synchronize_session=False)
        )
        self.db.expunge(booking)
        return result.rowcount == 1
