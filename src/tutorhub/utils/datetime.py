"""Date-time helpers for timestamps and academic years."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive timestamp for DB columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def current_academic_year(now: datetime | None = None) -> str:
    """Return the calendar year used when a user has no academic year set."""

    current = now.astimezone(timezone.utc) if now else datetime.now(timezone.utc)
    return str(current.year)
