"""Recurrence expansion interface."""

from datetime import datetime
from typing import Any, Protocol


class RecurrenceExpander(Protocol):
    """Interface for turning a recurrence rule into concrete start times."""

    def expand(self, rule: Any, window_start: datetime, window_end: datetime) -> list[datetime]:
        """Occurrence starts between window_start and window_end (inclusive), in order."""
        ...
