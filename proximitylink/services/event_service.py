"""Service layer for group calendar events."""

from __future__ import annotations

import calendar
from datetime import date
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from proximitylink.constants import CALENDAR_EVENTS, FILL_ALL_FIELDS
from proximitylink.errors import NotFoundError, PermissionDeniedError, ValidationError
from proximitylink.utils import timestamp_key, utcnow

from .calendar_grid import from_local_input, month_grid, parse_month, shift_month
from .group_service import GroupService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from proximitylink.events.models import CalendarEvent


def _clean_event_fields(
    user_id: str | None,
    title: str | None,
    description: str | None,
    start_time: Any,
    end_time: Any,
) -> dict[str, Any]:
    if not user_id:
        raise PermissionDeniedError("You must be signed in to manage events.")

    title = (title or "").strip()
    start = from_local_input(start_time)
    end = from_local_input(end_time)
    if not title or start is None or end is None:
        raise ValidationError(FILL_ALL_FIELDS)
    if end < start:
        raise ValidationError("The event cannot end before it starts.")

    return {
        "title": title,
        "description": (description or "").strip() or None,
        "start_time": start,
        "end_time": end,
    }


class EventService:
    """Service class for calendar events."""

    @staticmethod
    def list_events(db: Client, group_id: str) -> list[CalendarEvent]:
        """Fetch a group's events ordered by start time."""
        query = db.collection(CALENDAR_EVENTS).where(
            filter=firestore.FieldFilter("group_id", "==", group_id)
        )
        events = []
        for doc in query.stream():
            data = doc.to_dict() or {}
            data["id"] = doc.id
            events.append(cast("CalendarEvent", data))
        events.sort(key=lambda e: timestamp_key(e.get("start_time")))
        return events

    @staticmethod
    def get_event(db: Client, event_id: str) -> CalendarEvent:
        """Fetch a single event or raise NotFoundError."""
        doc = db.collection(CALENDAR_EVENTS).document(event_id).get()
        if not doc.exists:
            raise NotFoundError("Event not found.")
        data = doc.to_dict() or {}
        data["id"] = doc.id
        return cast("CalendarEvent", data)

    @staticmethod
    def require_owner(db: Client, group_id: str, user_id: str | None) -> None:
        """Only the group owner manages its calendar."""
        group = GroupService.get_group(db, group_id)
        if not user_id or group.get("owner_id") != user_id:
            raise PermissionDeniedError("Only the group owner can manage events.")

    @staticmethod
    def create_event(
        db: Client,
        group_id: str,
        user_id: str | None,
        title: str | None,
        description: str | None,
        start_time: Any,
        end_time: Any,
    ) -> str:
        """Add an event to a group's calendar and return its id."""
        fields = _clean_event_fields(user_id, title, description, start_time, end_time)
        EventService.require_owner(db, group_id, user_id)

        fields.update({"group_id": group_id, "user_id": user_id})
        _, event_ref = db.collection(CALENDAR_EVENTS).add(fields)
        current_app.logger.info(f"Event {event_ref.id} added to group {group_id}.")
        return event_ref.id

    @staticmethod
    def update_event(
        db: Client,
        event_id: str,
        user_id: str | None,
        title: str | None,
        description: str | None,
        start_time: Any,
        end_time: Any,
    ) -> CalendarEvent:
        """Change an event's details."""
        event = EventService.get_event(db, event_id)
        fields = _clean_event_fields(user_id, title, description, start_time, end_time)
        EventService.require_owner(db, event.get("group_id", ""), user_id)

        db.collection(CALENDAR_EVENTS).document(event_id).update(fields)
        event.update(fields)  # type: ignore[typeddict-item]
        return event

    @staticmethod
    def delete_event(db: Client, event_id: str, user_id: str | None) -> str:
        """Remove an event and return the id of its group."""
        event = EventService.get_event(db, event_id)
        group_id = event.get("group_id", "")
        EventService.require_owner(db, group_id, user_id)

        db.collection(CALENDAR_EVENTS).document(event_id).delete()
        current_app.logger.info(f"Event {event_id} removed from group {group_id}.")
        return group_id


def load_calendar(
    db: Client,
    group_id: str,
    month: str | None = None,
    selected: date | None = None,
) -> dict[str, Any]:
    """Gather a group's events and the month grid for display.

    A failed query yields an empty calendar with ``error`` set.
    """
    selected = selected or utcnow().date()
    year, month_number = parse_month(month, selected)

    error = None
    try:
        events = EventService.list_events(db, group_id)
    except Exception as e:
        current_app.logger.error(f"Error fetching events for group {group_id}: {e}")
        events = []
        error = "Could not load events."

    prev_year, prev_month = shift_month(year, month_number, -1)
    next_year, next_month = shift_month(year, month_number, 1)
    return {
        "events": events,
        "weeks": month_grid(events, year, month_number, selected),
        "title": f"{calendar.month_name[month_number]} {year}",
        "prev_month": f"{prev_year:04d}-{prev_month:02d}",
        "next_month": f"{next_year:04d}-{next_month:02d}",
        "selected": selected,
        "error": error,
    }
