import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError

from booking_engine.infrastructure.db.session import get_db_session, init_db, wait_for_database
from booking_engine.infrastructure.db.models import Event


def test_wait_for_database_returns_once_reachable(engine):
    wait_for_database(engine, max_retries=1, retry_delay_seconds=0)


def test_wait_for_database_gives_up(tmp_path, caplog):
    unreachable = create_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")

    with pytest.raises(OperationalError):
        wait_for_database(unreachable, max_retries=2, retry_delay_seconds=0)

    assert "Database not ready (attempt 1/2)" in caplog.text
    unreachable.dispose()


def test_init_db_creates_tables(tmp_path, monkeypatch):
    monkeypatch.setenv("DB_CONNECT_MAX_RETRIES", "1")
    fresh = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")

    init_db(fresh)

    assert {"bookings", "events", "tickets", "notifications"} <= set(
        inspect(fresh).get_table_names()
    )
    fresh.dispose()


def test_get_db_session_rolls_back_on_error(session_factory, make_event):
    event_id = make_event(title="Before")

    with pytest.raises(RuntimeError):
        with get_db_session(session_factory) as db:
            db.get(Event, event_id).title = "After"
            db.flush()
            raise RuntimeError("boom")

    with session_factory() as db:
        assert db.get(Event, event_id).title == "Before"
