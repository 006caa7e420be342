# booking_engine/infrastructure/repositories/transaction_repository.py

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.domain.mirror import MirrorUpdate
from booking_engine.infrastructure.db.models import Payment, Transaction


class TransactionRepository:
    """Transaction and Payment rows mirroring a booking's outcome."""

    def __init__(self, db: Session):
        self.db = db

    def get_transaction(self, booking_id: str) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.booking_id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_payment(self, booking_id: str) -> Payment | None:
        stmt = select(Payment).where(Payment.booking_id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def apply_mirror(
        self,
        booking_id: str,
        mirror: MirrorUpdate,
        now: datetime,
    ) -> tuple[Transaction | None, Payment | None]:
        """
        Writes a MirrorUpdate onto whichever mirror rows exist.
        Both rows are optional.
        """
        transaction = self.get_transaction(booking_id)
        if transaction and mirror.transaction_status is not None:
            transaction.status = mirror.transaction_status
            if mirror.record_refund:
                transaction.refund_amount = transaction.amount
                transaction.refunded_at = now

        payment = self.get_payment(booking_id)
        if payment and mirror.payment_status is not None:
            payment.status = mirror.payment_status
            if mirror.stamp_paid_at:
                payment.paid_at = now

        self.db.flush()
        return transaction, payment
