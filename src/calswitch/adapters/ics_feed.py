"""ICS feed adapter - reads an iCalendar file or URL."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import requests
from dateutil.rrule import rruleset, rrulestr
from icalendar import Calendar, Component, vRecur

from calswitch.core.actions import CalendarEvent

logger = logging.getLogger(__name__)


def to_datetime(value: date | datetime, tz: ZoneInfo) -> datetime:
    """Promote DATE values to midnight and localise floating times to tz."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time(0, 0), tzinfo=tz)
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def _as_list(prop) -> list:
    if prop is None:
        return []
    if isinstance(prop, list):
        return prop
    return [prop]


class IcsFeedSource:
    """
    iCalendar adapter.

    Loads a calendar from an http(s)/webcal URL or a local path.
    Implements EventSource protocol.
    """

    def __init__(
        self,
        location: str,
        timezone_name: str = "UTC",
        timeout: int = 30,
    ):
        self.location = location
        self.tz = ZoneInfo(timezone_name)
        self.timeout = timeout

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://", "webcal://"))

    def fetch_events(self) -> dict[str, CalendarEvent]:
        """Fetch all calendar entries, keyed by UID."""
        try:
            content = self._read()
        except requests.RequestException as e:
            logger.warning(f"Failed to download calendar {self.location}: {e}")
            return {}
        except OSError as e:
            logger.warning(f"Failed to read calendar {self.location}: {e}")
            return {}

        try:
            calendar = Calendar.from_ical(content)
        except ValueError as e:
            logger.warning(f"Failed to parse calendar {self.location}: {e}")
            return {}

        return self.parse_calendar(calendar)

    def _read(self) -> bytes:
        if self.is_remote:
            url = self.location
            if url.startswith("webcal://"):
                url = "https://" + url[len("webcal://") :]
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.content
        return Path(self.location).expanduser().read_bytes()

    def parse_calendar(self, calendar: Calendar) -> dict[str, CalendarEvent]:
        """Convert the components of a parsed calendar into CalendarEvents."""
        events: dict[str, CalendarEvent] = {}
        overridden: list[tuple[str, datetime]] = []

        for component in calendar.subcomponents:
            uid = str(component.get("UID", "")) or f"{component.name}-{len(events)}"
            try:
                event = self._parse_component(component)
                recurrence_id = None
                if "RECURRENCE-ID" in component:
                    recurrence_id = to_datetime(component.decoded("RECURRENCE-ID"), self.tz)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed calendar entry {uid}: {e}")
                continue

            if recurrence_id is not None:
                overridden.append((uid, recurrence_id))
                uid = f"{uid}@{recurrence_id.isoformat()}"
            key = uid
            suffix = 1
            while key in events:
                suffix += 1
                key = f"{uid}#{suffix}"
            events[key] = event

        # Modified instances replace the occurrence the master rule would produce
        for uid, recurrence_id in overridden:
            master = events.get(uid)
            if master is not None and isinstance(master.rrule, rruleset):
                master.rrule.exdate(recurrence_id)

        return events

    def _parse_component(self, component: Component) -> CalendarEvent:
        """Parse a single component. Missing times are left as None."""
        start = None
        end = None

        if "DTSTART" in component:
            raw_start = component.decoded("DTSTART")
            start = to_datetime(raw_start, self.tz)

            if "DTEND" in component:
                end = to_datetime(component.decoded("DTEND"), self.tz)
            elif "DURATION" in component:
                end = start + component.decoded("DURATION")
            elif component.name == "VEVENT":
                # RFC 5545: a DATE event without DTEND lasts one day, a DATE-TIME one is instantaneous
                end = start if isinstance(raw_start, datetime) else start + timedelta(days=1)

        rule = None
        if start is not None and "RRULE" in component:
            rule = self._build_rule(component, start)

        return CalendarEvent(
            summary=str(component.get("SUMMARY", "")),
            start=start,
            end=end,
            rrule=rule,
            type=component.name,
        )

    def _build_rule(self, component: Component, start: datetime) -> rruleset:
        rules = rruleset()

        for prop in _as_list(component.get("RRULE")):
            recur = vRecur(dict(prop))
            if "UNTIL" in recur:
                # dateutil needs UNTIL in UTC when DTSTART is aware
                recur["UNTIL"] = [
                    to_datetime(u, self.tz).astimezone(timezone.utc) for u in _as_list(recur["UNTIL"])
                ]
            rules.rrule(rrulestr(recur.to_ical().decode("utf-8"), dtstart=start))

        for prop in _as_list(component.get("RDATE")):
            for ddd in prop.dts:
                if isinstance(ddd.dt, (date, datetime)):
                    rules.rdate(to_datetime(ddd.dt, self.tz))

        for prop in _as_list(component.get("EXDATE")):
            for ddd in prop.dts:
                rules.exdate(to_datetime(ddd.dt, self.tz))

        return rules
