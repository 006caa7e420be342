# booking_engine/domain/state_machine.py

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Set, Union

from booking_engine.domain.exceptions import (
    BookingValidationError,
    InvalidStateError,
    InvalidStateTransitionError,
)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Confirmed:
    booking_id: str


@dataclass(frozen=True)
class Rejected:
    booking_id: str


@dataclass(frozen=True)
class Cancelled:
    booking_id: str
    was_confirmed: bool


# Every lifecycle operation ends in exactly one of these.
BookingOutcome = Union[Confirmed, Rejected, Cancelled]


class BookingStateMachine:
    """
    Central lifecycle controller for booking transitions.
    Defines the legal state transitions.

    pending -> confirmed | rejected. Both are terminal for resolution.
    Cancellation is not a stored status: the record is deleted once
    compensations are applied, so it is modelled as a separate check.
    """

    _ALLOWED_TRANSITIONS: Dict[PaymentStatus, Set[PaymentStatus]] = {
        PaymentStatus.PENDING: {
            PaymentStatus.CONFIRMED,
            PaymentStatus.REJECTED,
        },
        PaymentStatus.CONFIRMED: set(),
        PaymentStatus.REJECTED: set(),
    }

    _CANCELLABLE: Set[PaymentStatus] = {
        PaymentStatus.PENDING,
        PaymentStatus.CONFIRMED,
    }

    @classmethod
    def can_transition(
        cls,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(
        cls,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def can_cancel(cls, status: PaymentStatus) -> bool:
        cls._ensure_valid_status(status)
        return status in cls._CANCELLABLE

    @classmethod
    def resolve(
        cls,
        booking_id: str,
        current: PaymentStatus,
        decision: PaymentStatus,
    ) -> BookingOutcome:
        """
        Validates a payment decision against the current status and
        returns the resulting outcome.
        """
        cls.validate_transition(current, decision)

        if decision is PaymentStatus.CONFIRMED:
            return Confirmed(booking_id=booking_id)
        if decision is PaymentStatus.REJECTED:
            return Rejected(booking_id=booking_id)

        raise InvalidStateTransitionError(
            from_state=current.value,
            to_state=decision.value,
        )

    @classmethod
    def cancel(cls, booking_id: str, current: PaymentStatus) -> BookingOutcome:
        if not cls.can_cancel(current):
            raise InvalidStateError(
                f"Cannot cancel booking with status '{current.value}'."
            )
        return Cancelled(
            booking_id=booking_id,
            was_confirmed=current is PaymentStatus.CONFIRMED,
        )

    @staticmethod
    def parse_decision(value: object) -> PaymentStatus:
        """Maps a raw decision onto confirmed/rejected."""
        try:
            decision = PaymentStatus(value)
        except ValueError as exc:
            raise BookingValidationError(
                "Invalid payment status. Must be 'confirmed' or 'rejected'"
            ) from exc

        if decision is PaymentStatus.PENDING:
            raise BookingValidationError(
                "Invalid payment status. Must be 'confirmed' or 'rejected'"
            )
        return decision

    @staticmethod
    def _ensure_valid_status(status: PaymentStatus) -> None:
        if not isinstance(status, PaymentStatus):
            raise TypeError(
                f"Expected PaymentStatus, got {type(status)}"
            )
