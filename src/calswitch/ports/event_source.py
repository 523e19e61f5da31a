"""Event source interface."""

from typing import Protocol

from calswitch.core.actions import CalendarEvent


class EventSource(Protocol):
    """Interface for loading calendar entries from any backend."""

    def fetch_events(self) -> dict[str, CalendarEvent]:
        """Fetch all entries, keyed by an identifier unique within the source."""
        ...
