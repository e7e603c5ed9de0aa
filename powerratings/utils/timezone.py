"""
Timestamp helpers.

All times are handled in UTC. Naive datetimes read back from the database
are treated as UTC. Provider APIs expect ISO-8601 with a trailing ``Z`` and
second precision.
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Union

UTC = timezone.utc


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_db(value: datetime) -> datetime:
    """Naive UTC, the form timestamps are stored and compared in."""
    return ensure_utc(value).replace(tzinfo=None)


def to_iso_z(value: datetime) -> str:
    """
    Format a datetime the way The Odds API expects it.

    Examples:
        >>> to_iso_z(datetime(2026, 1, 10, 19, 30, 12, 500000, tzinfo=UTC))
        '2026-01-10T19:30:12Z'
    """
    return ensure_utc(value).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def truncate_to_hour(value: datetime) -> datetime:
    return ensure_utc(value).replace(minute=0, second=0, microsecond=0)


def hour_key(value: datetime) -> str:
    """
    Cache key identifying the hour a timestamp falls in.

    Examples:
        >>> hour_key(datetime(2026, 1, 10, 19, 59, tzinfo=UTC))
        '2026-01-10T19'
    """
    return truncate_to_hour(value).strftime("%Y-%m-%dT%H")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime.

    Returns None for empty or malformed values.
    """
    if not value:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except (TypeError, ValueError):
        return None


def start_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min, tzinfo=UTC)


def end_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.max, tzinfo=UTC)
