# booking_engine/domain/event_time.py

from datetime import date, datetime, timezone
import os
from typing import Optional
from zoneinfo import ZoneInfo

from booking_engine.domain.exceptions import InvalidEventScheduleError

EVENT_TIMEZONE = os.getenv("EVENT_TIMEZONE", "UTC")


def event_starts_at(event_date: date, event_time: str, tz_name: Optional[str] = None) -> datetime:
    """Combines an event's calendar date and "HH:MM" time into an aware datetime."""
    try:
        start = datetime.strptime(event_time or "00:00", "%H:%M").time()
    except (TypeError, ValueError) as exc:
        raise InvalidEventScheduleError(
            f"Event has an invalid start time '{event_time}'. Expected HH:MM."
        ) from exc

    tz_name = tz_name or EVENT_TIMEZONE
    tzinfo = timezone.utc if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    return datetime.combine(event_date, start, tzinfo=tzinfo)


def has_started(event_date: date, event_time: str, now: Optional[datetime] = None) -> bool:
    """True unless the event start is strictly in the future."""
    now = now or datetime.now(timezone.utc)
    return event_starts_at(event_date, event_time) <= now
