"""Composite event source - combines multiple calendar feeds."""

from calswitch.config import Config
from calswitch.core.actions import CalendarEvent

from .ics_feed import IcsFeedSource


class CompositeEventSource:
    """
    Composite adapter that merges the entries of several sources.

    Keys are prefixed with the source position so identical UIDs in
    different feeds stay distinct. Implements EventSource protocol.
    """

    def __init__(self, sources: list):
        self.sources = sources

    @classmethod
    def from_config(cls, config: Config) -> "CompositeEventSource":
        """One IcsFeedSource per configured feed."""
        return cls(
            [
                IcsFeedSource(feed, timezone_name=config.timezone, timeout=config.request_timeout)
                for feed in config.feeds
            ]
        )

    def fetch_events(self) -> dict[str, CalendarEvent]:
        """Fetch entries from every source."""
        events: dict[str, CalendarEvent] = {}
        for index, source in enumerate(self.sources):
            for key, event in source.fetch_events().items():
                events[f"{index}:{key}"] = event
        return events
