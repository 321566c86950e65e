"""Business-local clock, daytime window and booking expiry helpers."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from dtbooking.config import settings

DUE_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now() -> datetime:
    """Naive wall-clock time in the business time zone."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def format_due(value: datetime | None) -> str:
    return value.strftime(DUE_FORMAT) if value else ""


def parse_due(value: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM[:SS]`` into a naive local datetime."""
    value = value.strip()
    for fmt in (DUE_FORMAT, "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognised due timestamp: {value!r}")


def parse_booking_due(due_date: str, due_time: str) -> datetime:
    """Combine the booking form's date and time fields.

    The form sends ``MM/DD/YYYY`` and ``HH:MM``; ISO dates are accepted too.
    """
    value = f"{due_date.strip()} {due_time.strip()}"
    try:
        return datetime.strptime(value, "%m/%d/%Y %H:%M")
    except ValueError:
        return parse_due(value)


def parse_day(value: str, end_of_day: bool = False) -> datetime:
    """Parse a filter bound; a bare date means its start, or 23:59 with ``end_of_day``."""
    try:
        day = datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        return parse_due(value)
    return day.replace(hour=23, minute=59) if end_of_day else day


def is_day_time(now: datetime) -> bool:
    return settings.business_day_start_hour <= now.hour < settings.business_day_end_hour


def next_business_time(now: datetime) -> datetime:
    """The next start of the business day at or after ``now``."""
    start = now.replace(hour=settings.business_day_start_hour, minute=0, second=0, microsecond=0)
    if now.hour >= settings.business_day_start_hour:
        start += timedelta(days=1)
    return start


def next_business_time_string(now: datetime) -> str:
    """``send_after`` value accepted by OneSignal, with the local UTC offset."""
    aware = next_business_time(now).replace(tzinfo=ZoneInfo(settings.timezone))
    return aware.strftime("%Y-%m-%d %H:%M:%S GMT%z")


def will_expire_at(due: datetime, created_at: datetime) -> datetime:
    """When an unaccepted booking stops being offered to translators.

    The window shrinks with the lead time between creation and due time:
    very short notice expires at the due time, same-day bookings after 90
    minutes, bookings up to three days out after 16 hours, and anything
    later 48 hours before it is due.
    """
    hours = (due - created_at).total_seconds() / 3600
    if hours <= 1.5:
        return due
    if hours <= 24:
        return created_at + timedelta(minutes=90)
    if hours <= 72:
        return created_at + timedelta(hours=16)
    return due - timedelta(hours=48)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def convert_to_hours_mins(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    if minutes == 60:
        return "1h"
    return "%02dh %02dmin" % (minutes // 60, minutes % 60)


def session_interval(start: datetime, end: datetime) -> str:
    """``H:MM:SS`` elapsed between two instants (absolute)."""
    seconds = int(abs((end - start).total_seconds()))
    return "%d:%02d:%02d" % (seconds // 3600, (seconds % 3600) // 60, seconds % 60)


def session_time_text(session_time: str) -> str:
    """Render ``HH:MM[:SS]`` as the Swedish ``HH tim MM min`` used in emails."""
    parts = session_time.split(":")
    return f"{parts[0]} tim {parts[1]} min"
