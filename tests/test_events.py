"""Tests for calendar events: EventService and the events blueprint."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from proximitylink.errors import NotFoundError, PermissionDeniedError, ValidationError
from proximitylink.services.event_service import EventService, load_calendar
from tests.helpers import MOCK_USER_ID, FirestoreTestCase

UTC = timezone.utc


class TestEventService(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_group("g1", owner_id="owner")

    def test_create_event(self) -> None:
        event_id = EventService.create_event(
            self.db,
            "g1",
            "owner",
            " Picnic ",
            "",
            "2026-10-20T12:00",
            "2026-10-20T15:00",
        )

        event = EventService.get_event(self.db, event_id)
        self.assertEqual(event["title"], "Picnic")
        self.assertIsNone(event["description"])
        self.assertEqual(event["start_time"], datetime(2026, 10, 20, 12, tzinfo=UTC))
        self.assertEqual(event["group_id"], "g1")
        self.assertEqual(event["user_id"], "owner")

    def test_missing_fields(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            EventService.create_event(
                self.db, "g1", "owner", "", None, "2026-10-20T12:00", ""
            )
        self.assertEqual(ctx.exception.message, "Please fill in all fields")

    def test_end_before_start(self) -> None:
        with self.assertRaises(ValidationError):
            EventService.create_event(
                self.db, "g1", "owner", "Late", None, "2026-10-20T12:00", "2026-10-20T11:00"
            )

    def test_zero_length_event_allowed(self) -> None:
        self.assertTrue(
            EventService.create_event(
                self.db, "g1", "owner", "Moment", None, "2026-10-20T12:00", "2026-10-20T12:00"
            )
        )

    def test_only_owner_manages_events(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            EventService.create_event(
                self.db, "g1", "u2", "Mine", None, "2026-10-20T12:00", "2026-10-20T13:00"
            )

    def test_signed_out_user_rejected(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            EventService.create_event(
                self.db, "g1", None, "Mine", None, "2026-10-20T12:00", "2026-10-20T13:00"
            )

    def test_update_and_delete(self) -> None:
        self.add_event(
            "e1",
            "g1",
            start=datetime(2026, 10, 1, 9, tzinfo=UTC),
            end=datetime(2026, 10, 1, 10, tzinfo=UTC),
        )

        event = EventService.update_event(
            self.db, "e1", "owner", "Moved", "Now later", "2026-10-02T09:00", "2026-10-02T10:00"
        )
        self.assertEqual(event["title"], "Moved")
        self.assertEqual(
            EventService.get_event(self.db, "e1")["start_time"],
            datetime(2026, 10, 2, 9, tzinfo=UTC),
        )

        self.assertEqual(EventService.delete_event(self.db, "e1", "owner"), "g1")
        with self.assertRaises(NotFoundError):
            EventService.get_event(self.db, "e1")

    def test_list_events_sorted_by_start(self) -> None:
        self.add_event(
            "late",
            "g1",
            start=datetime(2026, 10, 9, tzinfo=UTC),
            end=datetime(2026, 10, 9, 1, tzinfo=UTC),
        )
        self.add_event(
            "early",
            "g1",
            start=datetime(2026, 10, 2, tzinfo=UTC),
            end=datetime(2026, 10, 2, 1, tzinfo=UTC),
        )
        self.add_event(
            "other",
            "g2",
            start=datetime(2026, 10, 1, tzinfo=UTC),
            end=datetime(2026, 10, 1, 1, tzinfo=UTC),
        )

        events = EventService.list_events(self.db, "g1")

        self.assertEqual([e["id"] for e in events], ["early", "late"])

    def test_load_calendar(self) -> None:
        self.add_event(
            "e1",
            "g1",
            start=datetime(2026, 10, 14, tzinfo=UTC),
            end=datetime(2026, 10, 14, 1, tzinfo=UTC),
        )

        cal = load_calendar(self.db, "g1", "2026-10", datetime(2026, 10, 18).date())

        self.assertEqual(cal["title"], "October 2026")
        self.assertEqual(cal["prev_month"], "2026-09")
        self.assertEqual(cal["next_month"], "2026-11")
        self.assertIsNone(cal["error"])
        self.assertEqual(len(cal["events"]), 1)

    def test_load_calendar_failure(self) -> None:
        with patch.object(EventService, "list_events", side_effect=RuntimeError("down")):
            cal = load_calendar(self.db, "g1", "2026-01")

        self.assertEqual(cal["events"], [])
        self.assertEqual(cal["error"], "Could not load events.")
        self.assertEqual(cal["title"], "January 2026")


class TestEventRoutes(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_group("g1", owner_id=MOCK_USER_ID, name="Runners")
        self.add_group("g2", owner_id="owner", name="Bakers")
        self.login()

    def test_create_event_route(self) -> None:
        response = self.client.post(
            "/group/g1/events/new",
            data={
                "title": "Race",
                "description": "5k",
                "start_time": "2026-10-20T09:00",
                "end_time": "2026-10-20T11:00",
            },
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn("/group/g1", response.location)
        events = EventService.list_events(self.db, "g1")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["title"], "Race")

    def test_create_event_missing_fields(self) -> None:
        response = self.client.post(
            "/group/g1/events/new",
            data={"title": "Race", "start_time": "", "end_time": ""},
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Please fill in all fields", response.data)
        self.assertEqual(EventService.list_events(self.db, "g1"), [])

    def test_create_event_not_owner(self) -> None:
        response = self.client.get("/group/g2/events/new", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertIn("/group/g2", response.location)

    def test_view_day_json(self) -> None:
        self.add_event(
            "e1",
            "g1",
            start=datetime(2026, 10, 14, 9, tzinfo=UTC),
            end=datetime(2026, 10, 15, 9, tzinfo=UTC),
        )

        response = self.client.get(
            "/group/g1/events/day/2026-10-15", headers={"Accept": "application/json"}
        )

        data = response.get_json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(data["summary"], "1 event")
        self.assertEqual(data["day"], "2026-10-15")
        self.assertEqual(len(data["events"]), 1)

    def test_view_day_page(self) -> None:
        response = self.client.get("/group/g1/events/day/2026-10-16")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"No events", response.data)

    def test_view_day_bad_date(self) -> None:
        response = self.client.get("/group/g1/events/day/not-a-date")
        self.assertEqual(response.status_code, 404)

    def test_list_events_json(self) -> None:
        self.add_event(
            "e1",
            "g1",
            start=datetime(2026, 10, 14, 9, tzinfo=UTC),
            end=datetime(2026, 10, 14, 10, tzinfo=UTC),
        )

        response = self.client.get(
            "/group/g1/events", headers={"Accept": "application/json"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["events"][0]["id"], "e1")

    def test_delete_event_route(self) -> None:
        self.add_event(
            "e1",
            "g1",
            start=datetime(2026, 10, 14, 9, tzinfo=UTC),
            end=datetime(2026, 10, 14, 10, tzinfo=UTC),
        )

        response = self.client.post("/events/e1/delete", follow_redirects=False)

        self.assertEqual(response.status_code, 302)
        self.assertFalse(self.exists("calendar_events", "e1"))

    def test_delete_event_of_other_group(self) -> None:
        self.add_event(
            "e2",
            "g2",
            start=datetime(2026, 10, 14, 9, tzinfo=UTC),
            end=datetime(2026, 10, 14, 10, tzinfo=UTC),
        )

        self.client.post("/events/e2/delete")

        self.assertTrue(self.exists("calendar_events", "e2"))


if __name__ == "__main__":
    unittest.main()
