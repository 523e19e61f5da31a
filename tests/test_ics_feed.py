"""Tests for the ICS feed adapter."""

from datetime import datetime, timezone
from unittest.mock import patch, MagicMock

import pytest
import requests

from calswitch.adapters.ics_feed import IcsFeedSource
from calswitch.core.actions import generate_actions

UTC = timezone.utc

ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//calswitch//tests//EN
BEGIN:VEVENT
UID:single@test
SUMMARY:Heating
DTSTART:20180130T100000
DTEND:20180130T101500
END:VEVENT
BEGIN:VEVENT
UID:daily@test
SUMMARY:Lights
DTSTART:20180130T180000
DTEND:20180130T183000
RRULE:FREQ=DAILY;COUNT=5
EXDATE:20180201T180000
END:VEVENT
BEGIN:VEVENT
UID:until@test
SUMMARY:Porch
DTSTART:20180130T200000
DURATION:PT1H
RRULE:FREQ=DAILY;UNTIL=20180201T000000Z
END:VEVENT
BEGIN:VEVENT
UID:holiday@test
SUMMARY:Holiday
DTSTART;VALUE=DATE:20180202
END:VEVENT
BEGIN:VTODO
UID:todo@test
SUMMARY:Chore
DUE:20180131T120000
END:VTODO
END:VCALENDAR
"""


@pytest.fixture
def ics_file(tmp_path):
    path = tmp_path / "calendar.ics"
    path.write_text(ICS)
    return path


@pytest.fixture
def events(ics_file):
    return IcsFeedSource(str(ics_file)).fetch_events()


class TestIcsFeedSource:
    def test_keys_by_uid(self, events):
        assert set(events) == {"single@test", "daily@test", "until@test", "holiday@test", "todo@test"}

    def test_single_event(self, events):
        event = events["single@test"]
        assert event.type == "VEVENT"
        assert event.summary == "Heating"
        assert event.start == datetime(2018, 1, 30, 10, 0, tzinfo=UTC)
        assert event.end == datetime(2018, 1, 30, 10, 15, tzinfo=UTC)
        assert event.rrule is None

    def test_floating_times_use_configured_timezone(self, ics_file):
        events = IcsFeedSource(str(ics_file), timezone_name="America/Toronto").fetch_events()
        assert events["single@test"].start == datetime(2018, 1, 30, 15, 0, tzinfo=UTC)

    def test_recurring_event_with_exdate(self, events):
        rule = events["daily@test"].rrule
        starts = list(rule)
        assert starts == [
            datetime(2018, 1, 30, 18, 0, tzinfo=UTC),
            datetime(2018, 1, 31, 18, 0, tzinfo=UTC),
            datetime(2018, 2, 2, 18, 0, tzinfo=UTC),
            datetime(2018, 2, 3, 18, 0, tzinfo=UTC),
        ]

    def test_until_and_duration(self, events):
        event = events["until@test"]
        assert event.end - event.start == (datetime(2018, 1, 1, 1) - datetime(2018, 1, 1))
        assert list(event.rrule) == [
            datetime(2018, 1, 30, 20, 0, tzinfo=UTC),
            datetime(2018, 1, 31, 20, 0, tzinfo=UTC),
        ]

    def test_all_day_event_lasts_one_day(self, events):
        event = events["holiday@test"]
        assert event.start == datetime(2018, 2, 2, 0, 0, tzinfo=UTC)
        assert event.end == datetime(2018, 2, 3, 0, 0, tzinfo=UTC)

    def test_todo_is_kept_with_its_type(self, events):
        assert events["todo@test"].type == "VTODO"
        assert events["todo@test"].start is None

    def test_feeds_action_builder(self, events):
        actions = generate_actions(events, datetime(2018, 1, 30, 9, 0, tzinfo=UTC))
        summaries = [a.summary for a in actions]
        assert summaries[:2] == ["Heating", "Heating"]
        assert summaries.count("Lights") == 8
        assert summaries.count("Porch") == 4
        assert summaries.count("Holiday") == 2
        assert "Chore" not in summaries

    def test_missing_file(self, tmp_path):
        assert IcsFeedSource(str(tmp_path / "nope.ics")).fetch_events() == {}

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.ics"
        path.write_text("this is not a calendar")
        assert IcsFeedSource(str(path)).fetch_events() == {}

    def test_duplicate_uids_are_kept(self, tmp_path):
        path = tmp_path / "dupes.ics"
        path.write_text(
            ICS.replace("UID:daily@test", "UID:single@test")
        )
        events = IcsFeedSource(str(path)).fetch_events()
        assert "single@test" in events
        assert "single@test#2" in events


class TestRemoteFeed:
    @patch("calswitch.adapters.ics_feed.requests.get")
    def test_downloads_url(self, mock_get):
        mock_get.return_value = MagicMock(content=ICS.encode())
        source = IcsFeedSource("https://example.com/cal.ics", timeout=5)

        events = source.fetch_events()

        mock_get.assert_called_once_with("https://example.com/cal.ics", timeout=5)
        assert "single@test" in events

    @patch("calswitch.adapters.ics_feed.requests.get")
    def test_webcal_is_fetched_over_https(self, mock_get):
        mock_get.return_value = MagicMock(content=ICS.encode())
        IcsFeedSource("webcal://example.com/cal.ics").fetch_events()
        assert mock_get.call_args[0][0] == "https://example.com/cal.ics"

    @patch("calswitch.adapters.ics_feed.requests.get")
    def test_network_error_gives_no_events(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")
        assert IcsFeedSource("https://example.com/cal.ics").fetch_events() == {}

    @patch("calswitch.adapters.ics_feed.requests.get")
    def test_http_error_gives_no_events(self, mock_get):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_get.return_value = response
        assert IcsFeedSource("https://example.com/cal.ics").fetch_events() == {}


class TestModifiedInstances:
    def test_override_replaces_master_occurrence(self, tmp_path):
        path = tmp_path / "moved.ics"
        path.write_text(
            "BEGIN:VCALENDAR\n"
            "VERSION:2.0\n"
            "PRODID:-//calswitch//tests//EN\n"
            "BEGIN:VEVENT\n"
            "UID:standup@test\n"
            "SUMMARY:Standup\n"
            "DTSTART:20180130T090000\n"
            "DTEND:20180130T091500\n"
            "RRULE:FREQ=DAILY;COUNT=3\n"
            "END:VEVENT\n"
            "BEGIN:VEVENT\n"
            "UID:standup@test\n"
            "RECURRENCE-ID:20180131T090000\n"
            "SUMMARY:Standup (moved)\n"
            "DTSTART:20180131T110000\n"
            "DTEND:20180131T111500\n"
            "END:VEVENT\n"
            "END:VCALENDAR\n"
        )

        events = IcsFeedSource(str(path)).fetch_events()

        assert set(events) == {"standup@test", "standup@test@2018-01-31T09:00:00+00:00"}
        assert list(events["standup@test"].rrule) == [
            datetime(2018, 1, 30, 9, 0, tzinfo=UTC),
            datetime(2018, 2, 1, 9, 0, tzinfo=UTC),
        ]
        actions = generate_actions(events, datetime(2018, 1, 30, 8, 0, tzinfo=UTC))
        assert [(a.date.hour, a.summary) for a in actions if a.state] == [
            (9, "Standup"),
            (11, "Standup (moved)"),
            (9, "Standup"),
        ]
