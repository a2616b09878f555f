"""Display helpers for todoview.

Color lookups and due-date status/labels attached to the served snapshot.
None of this affects ordering or visibility.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from todoview.engine.retention import parse_timestamp
from todoview.models.constants import DEFAULT_PROJECT_COLOR
from todoview.models.todoist import TodoistDue


# Todoist color name to hex mapping
TODOIST_COLORS: Dict[str, str] = {
    "berry_red": "#b8255f",
    "red": "#db4035",
    "orange": "#ff9933",
    "yellow": "#fad000",
    "olive_green": "#afb83b",
    "lime_green": "#7ecc49",
    "green": "#299438",
    "mint_green": "#6accbc",
    "teal": "#158fad",
    "sky_blue": "#14aaf5",
    "light_blue": "#96c3eb",
    "blue": "#4073ff",
    "grape": "#884dff",
    "violet": "#af38eb",
    "lavender": "#eb96eb",
    "magenta": "#e05194",
    "salmon": "#ff8d85",
    "charcoal": "#808080",
    "grey": "#b8b8b8",
    "taupe": "#ccac93",
}

PRIORITY_COLORS: Dict[int, str] = {
    4: "#d1453b",  # P1
    3: "#eb8909",  # P2
    2: "#246fe0",  # P3
    1: "transparent",  # P4
}

DUE_STATUS_OVERDUE = "overdue"
DUE_STATUS_TODAY = "today"
DUE_STATUS_TOMORROW = "tomorrow"
DUE_STATUS_THIS_WEEK = "this-week"
DUE_STATUS_FUTURE = "future"
DUE_STATUS_NO_DATE = "no-date"

DUE_STATUS_COLORS: Dict[str, str] = {
    DUE_STATUS_OVERDUE: "#d1453b",  # Red
    DUE_STATUS_TODAY: "#058527",  # Green
    DUE_STATUS_TOMORROW: "#692fc2",  # Purple
    DUE_STATUS_THIS_WEEK: "#246fe0",  # Blue
}


def resolve_project_color(color_name: Optional[str]) -> str:
    """Get the hex color for a Todoist color name (charcoal if unknown)."""
    return TODOIST_COLORS.get(color_name or "", TODOIST_COLORS[DEFAULT_PROJECT_COLOR])


def get_priority_info(priority: int) -> Dict[str, str]:
    """Get the display color and label for an API priority (4 -> P1, 1 -> P4)."""
    return {
        "color": PRIORITY_COLORS.get(priority, "transparent"),
        "label": f"P{5 - priority}",
    }


def get_due_date_status(due: Optional[TodoistDue], now: datetime) -> str:
    """Classify a due date relative to now.

    Date-only tasks are overdue from the day after their due date; tasks
    with a precise time are overdue as soon as that time has passed.

    Args:
        due: Due date of the task
        now: Reference time. "Today" is its calendar date in the task's own
            timezone, or in UTC when the task has none or it is unknown

    Returns:
        One of overdue, today, tomorrow, this-week, future, no-date
    """
    due_day = _due_day(due)
    if due_day is None:
        return DUE_STATUS_NO_DATE

    today = _reference_day(due, now)
    due_instant = parse_timestamp(due.datetime)
    if due_instant is not None:
        if due_instant < _as_utc(now):
            return DUE_STATUS_OVERDUE
    elif due_day < today:
        return DUE_STATUS_OVERDUE

    if due_day == today:
        return DUE_STATUS_TODAY
    if due_day == today + timedelta(days=1):
        return DUE_STATUS_TOMORROW
    if due_day < today + timedelta(days=7):
        return DUE_STATUS_THIS_WEEK
    return DUE_STATUS_FUTURE


def format_due_date(due: Optional[TodoistDue], now: datetime) -> str:
    """Format a due date for display ("Today", "Tomorrow 3:00 PM", "Mon", "Oct 20", ...)."""
    status = get_due_date_status(due, now)
    if status == DUE_STATUS_NO_DATE:
        return ""

    due_day = _due_day(due)
    due_instant = _local_due_instant(due)

    if status == DUE_STATUS_OVERDUE:
        days = (_reference_day(due, now) - due_day).days
        if days <= 0 and due_instant is not None:
            return _format_time(due_instant)
        if days == 1:
            return "Yesterday"
        if days < 7:
            return f"{days} days ago"
        return _format_date(due_day)
    if status == DUE_STATUS_TODAY:
        return _format_time(due_instant) if due_instant is not None else "Today"
    if status == DUE_STATUS_TOMORROW:
        return f"Tomorrow {_format_time(due_instant)}" if due_instant is not None else "Tomorrow"
    if status == DUE_STATUS_THIS_WEEK:
        return due_day.strftime("%a")
    return _format_date(due_day)


def get_due_date_color(status: str) -> str:
    """Get the CSS color for a due date status."""
    return DUE_STATUS_COLORS.get(status, "inherit")


def _due_day(due: Optional[TodoistDue]) -> Optional[date]:
    if due is None:
        return None
    parsed = parse_timestamp(due.date or due.datetime)
    if parsed is None:
        return None
    return parsed.date()


def _task_zone(due: TodoistDue) -> tzinfo:
    if not due.timezone:
        return timezone.utc
    try:
        return ZoneInfo(due.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def _reference_day(due: TodoistDue, now: datetime) -> date:
    """Calendar date of now as seen from the task's timezone."""
    return _as_utc(now).astimezone(_task_zone(due)).date()


def _local_due_instant(due: Optional[TodoistDue]) -> Optional[datetime]:
    """Precise due time in the task's own timezone (UTC when unknown)."""
    if due is None:
        return None
    instant = parse_timestamp(due.datetime)
    if instant is None or not due.timezone:
        return instant
    return instant.astimezone(_task_zone(due))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _format_time(value: datetime) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def _format_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"
