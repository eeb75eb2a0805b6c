"""
curation-service/curation/utils/datetime_utils.py
Timezone-aware datetime utilities.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time with timezone awareness."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_string(dt: Optional[datetime] = None) -> str:
    """
    Convert datetime to ISO 8601 string with Z suffix.

    Example:
        >>> to_iso_string(datetime(2025, 1, 15, 10, 30, 45, tzinfo=timezone.utc))
        '2025-01-15T10:30:45.000Z'
    """
    if dt is None:
        dt = utc_now()

    iso_str = ensure_utc(dt).isoformat(timespec='milliseconds')
    if iso_str.endswith('+00:00'):
        return iso_str[:-6] + 'Z'
    return iso_str


def date_stamp(dt: Optional[datetime] = None, fmt: str = "%Y-%m-%d") -> str:
    """Human-readable date stamp used when appending to note fields."""
    if dt is None:
        dt = utc_now()
    return dt.strftime(fmt)
