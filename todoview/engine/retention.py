"""Retention window classification for completed tasks.

A completed task stays on screen for a fixed window after completion so the
user can see what was recently done. Everything here is tolerant of bad
input: an unparseable timestamp is simply "not in the window".
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser

from todoview.models.constants import RETENTION_WINDOW_HOURS

TimestampLike = Union[str, datetime, date, None]


def parse_timestamp(value: TimestampLike) -> Optional[datetime]:
    """Parse an upstream timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (with `Z`, an offset, or naive), date-only
    strings, and datetime/date objects. Naive values are taken as UTC.

    Args:
        value: Timestamp to parse

    Returns:
        Aware UTC datetime, or None if value is empty or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_within_retention_window(
    timestamp: TimestampLike,
    now: datetime,
    window_hours: float = RETENTION_WINDOW_HOURS,
) -> bool:
    """Check whether a completion timestamp falls inside the retention window.

    Future timestamps (negative age, e.g. from clock skew) are out of window.

    Args:
        timestamp: Completion timestamp
        now: Reference time
        window_hours: Window length in hours (48 by default)

    Returns:
        True iff 0 <= (now - timestamp) <= window_hours
    """
    completed = parse_timestamp(timestamp)
    reference = parse_timestamp(now)
    if completed is None or reference is None:
        return False

    age = reference - completed
    return timedelta(0) <= age <= timedelta(hours=window_hours)
