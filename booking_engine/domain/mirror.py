# booking_engine/domain/mirror.py

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from booking_engine.domain.state_machine import (
    BookingOutcome,
    Cancelled,
    Confirmed,
    Rejected,
)


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentRecordStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class MirrorUpdate:
    """
    Target state of the transaction/payment mirrors for one outcome.
    None means the field is left untouched.
    """

    transaction_status: Optional[TransactionStatus] = None
    payment_status: Optional[PaymentRecordStatus] = None
    stamp_paid_at: bool = False
    record_refund: bool = False


def mirror_outcome(
    outcome: BookingOutcome,
    transaction_status: Optional[TransactionStatus] = None,
    transaction_amount: int = 0,
) -> MirrorUpdate:
    """
    confirmed  -> completed / succeeded (+paid_at)
    rejected   -> failed / failed
    cancelled  -> refunded (+refund fields) / unchanged, only when a
                  completed transaction with a positive amount exists
    """
    if isinstance(outcome, Confirmed):
        return MirrorUpdate(
            transaction_status=TransactionStatus.COMPLETED,
            payment_status=PaymentRecordStatus.SUCCEEDED,
            stamp_paid_at=True,
        )

    if isinstance(outcome, Rejected):
        return MirrorUpdate(
            transaction_status=TransactionStatus.FAILED,
            payment_status=PaymentRecordStatus.FAILED,
        )

    if isinstance(outcome, Cancelled):
        if is_refundable(transaction_status, transaction_amount):
            return MirrorUpdate(
                transaction_status=TransactionStatus.REFUNDED,
                record_refund=True,
            )
        return MirrorUpdate()

    raise TypeError(f"Unhandled booking outcome: {type(outcome).__name__}")


def is_refundable(
    transaction_status: Optional[TransactionStatus],
    amount: int,
) -> bool:
    return transaction_status is TransactionStatus.COMPLETED and (amount or 0) > 0
