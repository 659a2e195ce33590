"""Timezone-aware datetime helpers."""

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Current UTC time with tzinfo set."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC.

    SQLite hands back naive values for timestamps that were written as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def truncate_to_hour(dt: datetime) -> datetime:
    """Drop minutes, seconds and microseconds."""
    return ensure_utc(dt).replace(minute=0, second=0, microsecond=0)
