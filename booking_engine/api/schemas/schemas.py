from datetime import date as date_type
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ResolvePaymentRequest(BaseModel):
    # Validated by the lifecycle so a bad value maps to its own message.
    payment_status: str


class ResolvePaymentResponse(BaseModel):
    booking_id: str
    payment_status: Literal["confirmed", "rejected"]
    ticket_number: str | None = None


class CancelBookingResponse(BaseModel):
    booking_id: str
    refunded: bool


class TicketEventResponse(BaseModel):
    id: str
    title: str
    date: date_type
    time: str


class TicketResponse(BaseModel):
    id: str
    booking_id: str
    ticket_number: str
    qr_payload: str
    status: Literal["active", "used", "cancelled"]
    checked_in_at: datetime | None = None
    event: TicketEventResponse


class CheckInRequest(BaseModel):
    ticket_number: str = Field(min_length=1)


class TicketVerificationResponse(BaseModel):
    ticket_number: str
    status: Literal["active", "used", "cancelled"]
    checked_in_at: datetime | None = None
    event: TicketEventResponse
