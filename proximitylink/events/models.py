"""Data models for the events blueprint."""

from __future__ import annotations

from datetime import date, datetime
from typing import TypedDict

from proximitylink.core.types import FirestoreDocument


class CalendarEvent(FirestoreDocument, total=False):
    """A calendar event document in Firestore."""

    group_id: str
    user_id: str
    title: str
    description: str | None
    start_time: datetime
    end_time: datetime


class CalendarDay(TypedDict):
    """One tile of the month grid."""

    date: date
    day: int
    in_month: bool
    count: int
    label: str
    css_class: str | None
