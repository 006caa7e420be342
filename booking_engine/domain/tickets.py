# booking_engine/domain/tickets.py

from datetime import datetime, timezone
from enum import Enum
import json
import os
import secrets
from typing import Optional

from booking_engine.domain.exceptions import TicketStateError

TICKET_NUMBER_PREFIX = os.getenv("TICKET_NUMBER_PREFIX", "TKT")


class TicketStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"


def generate_ticket_number(now: Optional[datetime] = None) -> str:
    """
    TKT-20261018-9F2C41AB: issue date plus 32 random bits.
    Uniqueness is still enforced by the tickets table.
    """
    now = now or datetime.now(timezone.utc)
    return f"{TICKET_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"


def build_qr_payload(ticket_number: str, booking_id: str) -> str:
    return json.dumps(
        {"ticketNumber": ticket_number, "bookingId": booking_id},
        separators=(",", ":"),
        sort_keys=True,
    )


def ensure_can_check_in(status: TicketStatus) -> None:
    if status is TicketStatus.USED:
        raise TicketStateError("Ticket has already been used")
    if status is TicketStatus.CANCELLED:
        raise TicketStateError("Ticket has been cancelled")
