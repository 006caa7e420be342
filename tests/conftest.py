import os

# Must be set before booking_engine builds its module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from booking_engine.api.routes.routes import get_db, get_dispatcher
from booking_engine.application.side_effects import (
    LoggingEmailSender,
    SideEffectDispatcher,
    SqlNotificationSink,
)
from booking_engine.domain.authorization import Actor, Role
from booking_engine.domain.mirror import PaymentRecordStatus, TransactionStatus
from booking_engine.domain.state_machine import PaymentStatus
from booking_engine.infrastructure.db.models import Booking, Event, Payment, Transaction
from booking_engine.infrastructure.db.session import Base
from booking_engine.main import app

ORGANIZER_ID = "organizer-1"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'booking_engine.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # Take the write lock up front so concurrent sessions queue the way
    # row locks make them queue on Postgres; also gives real SAVEPOINTs.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_event(session_factory):
    def _make_event(
        capacity=10,
        available_tickets=None,
        days_ahead=7,
        time="19:00",
        organizer_id=ORGANIZER_ID,
        title="Sunset Sessions",
    ):
        if available_tickets is None:
            available_tickets = capacity
        with session_factory() as session:
            item = Event(
                organizer_id=organizer_id,
                title=title,
                date=date.today() + timedelta(days=days_ahead),
                time=time,
                capacity=capacity,
                available_tickets=available_tickets,
            )
            session.add(item)
            session.flush()
            event_id = item.id
            session.commit()
            return event_id

    return _make_event


@pytest.fixture
def make_booking(session_factory):
    def _make_booking(
        event_id,
        user_id="user-1",
        email="user1@example.com",
        payment_status=PaymentStatus.PENDING,
        amount=5000,
        with_mirrors=True,
    ):
        with session_factory() as session:
            booking = Booking(
                event_id=event_id,
                user_id=user_id,
                email=email,
                payment_status=payment_status,
            )
            session.add(booking)
            session.flush()
            if with_mirrors:
                session.add(
                    Transaction(
                        booking_id=booking.id,
                        amount=amount,
                        status=TransactionStatus.PENDING,
                    )
                )
                session.add(
                    Payment(
                        booking_id=booking.id,
                        status=PaymentRecordStatus.PENDING,
                    )
                )
            booking_id = booking.id
            session.commit()
            return booking_id

    return _make_booking


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=Role.ADMIN)


@pytest.fixture
def organizer():
    return Actor(id=ORGANIZER_ID, role=Role.ORGANIZER)


@pytest.fixture
def other_organizer():
    return Actor(id="organizer-2", role=Role.ORGANIZER, organizer_id="org-2")


@pytest.fixture
def owner():
    return Actor(id="user-1", role=Role.USER, email="user1@example.com")


@pytest.fixture
def stranger():
    return Actor(id="user-9", role=Role.USER, email="user9@example.com")


class RecordingEmailSender(LoggingEmailSender):
    """Keeps every message so tests can inspect what was sent."""

    def __init__(self, sender):
        super().__init__(sender=sender)
        self.sent_emails = []

    def send(self, to, subject, html):
        super().send(to, subject, html)
        self.sent_emails.append({"from": self.sender, "to": to, "subject": subject, "html": html})


@pytest.fixture
def email_sender():
    return RecordingEmailSender(sender="tickets@example.com")


@pytest.fixture
def client(session_factory, email_sender):

    def _get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _get_dispatcher():
        return SideEffectDispatcher(
            notification_sink=SqlNotificationSink(session_factory),
            email_sender=email_sender,
        )

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_dispatcher] = _get_dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    def _headers_for(actor):
        headers = {"X-Actor-Id": actor.id, "X-Actor-Role": actor.role.value}
        if actor.organizer_id:
            headers["X-Organizer-Id"] = actor.organizer_id
        if actor.email:
            headers["X-Actor-Email"] = actor.email
        return headers

    return _headers_for
