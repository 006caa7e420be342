import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from booking_engine.api.schemas.schemas import (
    CancelBookingResponse,
    CheckInRequest,
    ResolvePaymentRequest,
    ResolvePaymentResponse,
    TicketEventResponse,
    TicketResponse,
    TicketVerificationResponse,
)
from booking_engine.application.booking_service import BookingService
from booking_engine.application.side_effects import (
    EmailRenderer,
    LoggingEmailSender,
    SideEffectDispatcher,
    SqlNotificationSink,
)
from booking_engine.application.ticket_service import TicketDetails, TicketService
from booking_engine.domain.authorization import Actor, Role
from booking_engine.domain.exceptions import BookingEngineError, UnauthenticatedError
from booking_engine.infrastructure.db.session import SessionLocal


router = APIRouter()
logger = logging.getLogger(__name__)

_email_sender = LoggingEmailSender()
_email_renderer = EmailRenderer()


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
    x_organizer_id: str | None = Header(default=None),
    x_actor_email: str | None = Header(default=None),
) -> Actor:
    """Identity is resolved upstream and forwarded as trusted headers."""
    if not x_actor_id or not x_actor_role:
        raise _http_error(UnauthenticatedError("Unauthorized"))
    try:
        role = Role(x_actor_role.strip().lower())
    except ValueError as exc:
        raise _http_error(UnauthenticatedError("Unauthorized")) from exc

    return Actor(
        id=x_actor_id,
        role=role,
        organizer_id=x_organizer_id or None,
        email=x_actor_email or None,
    )


def get_dispatcher() -> SideEffectDispatcher:
    return SideEffectDispatcher(
        notification_sink=SqlNotificationSink(SessionLocal),
        email_sender=_email_sender,
        renderer=_email_renderer,
    )


def _http_error(exc: BookingEngineError) -> HTTPException:
    logger.info("Request refused (%s): %s", exc.status_code, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def _ticket_event(details: TicketDetails) -> TicketEventResponse:
    return TicketEventResponse(
        id=details.event.id,
        title=details.event.title,
        date=details.event.date,
        time=details.event.time,
    )


def _ticket_response(details: TicketDetails) -> TicketResponse:
    ticket = details.ticket
    return TicketResponse(
        id=ticket.id,
        booking_id=ticket.booking_id,
        ticket_number=ticket.ticket_number,
        qr_payload=ticket.qr_payload,
        status=ticket.status.value,
        checked_in_at=ticket.checked_in_at,
        event=_ticket_event(details),
    )


@router.get("/health")
def health():
    return {"message": "Booking lifecycle engine is running"}


@router.patch("/bookings/{booking_id}", response_model=ResolvePaymentResponse)
def resolve_payment(
    booking_id: str,
    request: ResolvePaymentRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    service = BookingService(db)

    try:
        result = service.resolve_payment(
            booking_id=booking_id,
            actor=actor,
            decision=request.payment_status,
        )
    except BookingEngineError as exc:
        raise _http_error(exc) from exc

    db.commit()
    background_tasks.add_task(dispatcher.dispatch, result.effects)

    return ResolvePaymentResponse(
        booking_id=result.booking_id,
        payment_status=result.payment_status.value,
        ticket_number=result.ticket_number,
    )


@router.delete("/bookings/{booking_id}", response_model=CancelBookingResponse)
def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    service = BookingService(db)

    try:
        result = service.cancel_booking(booking_id=booking_id, actor=actor)
    except BookingEngineError as exc:
        raise _http_error(exc) from exc

    db.commit()
    background_tasks.add_task(dispatcher.dispatch, result.effects)

    return CancelBookingResponse(
        booking_id=result.booking_id,
        refunded=result.refunded,
    )


@router.get("/bookings/{booking_id}/ticket", response_model=TicketResponse)
def get_booking_ticket(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    try:
        details = TicketService(db).get_ticket_for_booking(booking_id, actor)
    except BookingEngineError as exc:
        raise _http_error(exc) from exc

    return _ticket_response(details)


@router.post("/tickets/check-in", response_model=TicketResponse)
def check_in_ticket(
    request: CheckInRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    try:
        details = TicketService(db).check_in(request.ticket_number, actor)
    except BookingEngineError as exc:
        raise _http_error(exc) from exc

    db.commit()
    return _ticket_response(details)


@router.get("/tickets/{ticket_number}/verify", response_model=TicketVerificationResponse)
def verify_ticket(
    ticket_number: str,
    db: Session = Depends(get_db),
):
    try:
        details = TicketService(db).verify(ticket_number)
    except BookingEngineError as exc:
        raise _http_error(exc) from exc

    return TicketVerificationResponse(
        ticket_number=details.ticket.ticket_number,
        status=details.ticket.status.value,
        checked_in_at=details.ticket.checked_in_at,
        event=_ticket_event(details),
    )
