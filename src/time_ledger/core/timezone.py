"""Timezone helpers for converting between user-local and UTC time.

The core stores and compares aware UTC datetimes only. User input without an
offset and calendar-date bucketing are interpreted in the user's configured
IANA timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def is_valid_timezone(name: str) -> bool:
    """Check whether ``name`` is a known IANA timezone."""
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def to_utc(value: datetime, tz_name: str) -> datetime:
    """Convert a datetime to aware UTC.

    Naive values are interpreted as wall-clock time in ``tz_name``.

    Args:
        value: Datetime to convert
        tz_name: IANA timezone used for naive values

    Returns:
        Aware datetime in UTC
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name))
    return value.astimezone(timezone.utc)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime to the wall-clock time of ``tz_name``."""
    return value.astimezone(ZoneInfo(tz_name))


def local_date(value: datetime, tz_name: str) -> date:
    """Calendar date of ``value`` as seen in ``tz_name``."""
    return to_local(value, tz_name).date()


def day_bounds(start_date: date, end_date: date, tz_name: str) -> tuple[datetime, datetime]:
    """UTC bounds covering whole local days from ``start_date`` to ``end_date``.

    Returns:
        Tuple of (inclusive start, exclusive end) as aware UTC datetimes
    """
    zone = ZoneInfo(tz_name)
    start = datetime.combine(start_date, time.min, tzinfo=zone)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
