

class BookingEngineError(Exception):
    """
    Base exception for all domain-level errors
    inside the booking lifecycle engine.
    """

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthenticatedError(BookingEngineError):
    """Raised when a request carries no usable actor identity."""

    status_code = 401


class ForbiddenError(BookingEngineError):
    """Raised when the actor may not perform the operation."""

    status_code = 403


class NotFoundError(BookingEngineError):
    status_code = 404


class BookingValidationError(BookingEngineError):
    """Raised for malformed input, e.g. an unknown payment decision."""

    status_code = 400


class InvalidStateError(BookingEngineError):
    """
    Raised when an operation is not valid for the current
    booking, event or ticket state.
    """

    status_code = 409


class InvalidStateTransitionError(InvalidStateError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Cannot update booking with status '{from_state}'. "
            f"Only pending bookings can be updated."
        )
        super().__init__(message)


class CapacityExhaustedError(InvalidStateError):
    """Raised when the capacity ledger refuses a seat."""


class EventAlreadyStartedError(InvalidStateError):
    """Raised when cancelling a booking for an event that has started."""


class TicketStateError(InvalidStateError):
    """Raised when a ticket cannot move to the requested status."""


class InvalidEventScheduleError(InvalidStateError):
    """Raised when an event's stored date or time cannot be interpreted."""
