"""Calendar helpers: day filtering, tile classes and the month grid."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable

from proximitylink.constants import EVENT_BADGE_MAX, LOCAL_INPUT_FORMAT
from proximitylink.utils import as_datetime

if TYPE_CHECKING:
    from proximitylink.events.models import CalendarDay

# Weeks start on Sunday.
_CALENDAR = calendar.Calendar(firstweekday=calendar.SUNDAY)


def _utc_date(value: Any) -> date | None:
    dt = as_datetime(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


def covers_day(event: dict[str, Any], day: date) -> bool:
    """Return True if the event's date range includes ``day``.

    Only dates are compared, so an event ending at 00:30 still covers its
    end date in full.
    """
    start = _utc_date(event.get("start_time"))
    end = _utc_date(event.get("end_time"))
    if start is None or end is None:
        return False
    return start <= day <= end


def events_for_day(events: Iterable[dict[str, Any]], day: date) -> list[dict[str, Any]]:
    return [event for event in events if covers_day(event, day)]


def event_count_for_day(events: Iterable[dict[str, Any]], day: date) -> int:
    return len(events_for_day(events, day))


def tile_class(count: int, selected: bool = False) -> str | None:
    """CSS class for a calendar tile."""
    if selected:
        return "selected-day"
    if count <= 0:
        return None
    if count == 1:
        return "event-day-1"
    if count == 2:
        return "event-day-2"
    return "event-day-3plus"


def count_label(count: int) -> str:
    """Text for the event indicator on a tile."""
    if count <= 0:
        return ""
    if count > EVENT_BADGE_MAX:
        return f"{EVENT_BADGE_MAX}+"
    return str(count)


def day_summary(count: int) -> str:
    if count <= 0:
        return "No events"
    if count == 1:
        return "1 event"
    return f"{count} events"


def month_grid(
    events: list[dict[str, Any]], year: int, month: int, selected: date | None = None
) -> list[list[CalendarDay]]:
    """Build the weeks of a month view with a per-day event count."""
    weeks = []
    for week in _CALENDAR.monthdatescalendar(year, month):
        row = []
        for day in week:
            count = event_count_for_day(events, day)
            tile: CalendarDay = {
                "date": day,
                "day": day.day,
                "in_month": day.month == month,
                "count": count,
                "label": count_label(count),
                "css_class": tile_class(count, day == selected),
            }
            row.append(tile)
        weeks.append(row)
    return weeks


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months forward (or back) from year/month."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def parse_month(value: str | None, today: date) -> tuple[int, int]:
    """Parse ``YYYY-MM``, falling back to the month of ``today``."""
    if value:
        try:
            parsed = datetime.strptime(value, "%Y-%m")
            return parsed.year, parsed.month
        except ValueError:
            pass
    return today.year, today.month


def parse_day(value: str) -> date | None:
    """Parse ``YYYY-MM-DD`` or return None."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def to_local_input(value: Any) -> str:
    """Format a timestamp for a ``datetime-local`` input."""
    dt = as_datetime(value)
    if dt is None:
        return ""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(LOCAL_INPUT_FORMAT)


def from_local_input(value: Any) -> datetime | None:
    """Read a ``datetime-local`` value as an aware UTC datetime."""
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = datetime.strptime(value.strip(), LOCAL_INPUT_FORMAT)
        except ValueError:
            value = as_datetime(value)
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
