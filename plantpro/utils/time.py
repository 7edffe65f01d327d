"""
Time helpers shared by the analytics and report layers.

All window arithmetic is done in UTC so "last 7 days" means the same thing
regardless of the server's local timezone.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Union


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utcnow().date()


def days_ago(days: int, *, now: datetime | None = None) -> datetime:
    """Return the instant ``days`` days before ``now`` (defaults to utcnow)."""
    return (now or utcnow()) - timedelta(days=days)


def as_date(value: Union[date, datetime, str, None]) -> date | None:
    """
    Normalize a day bucket coming back from the database.

    ``DATE(...)`` yields a ``date`` on PostgreSQL but an ISO string on SQLite.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset on storage)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
