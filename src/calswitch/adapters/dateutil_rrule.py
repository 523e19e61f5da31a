"""python-dateutil recurrence adapter."""

import logging
from datetime import datetime
from typing import Any

from dateutil.rrule import rrulestr

logger = logging.getLogger(__name__)


class DateutilRecurrenceExpander:
    """
    Recurrence expander backed by dateutil.rrule.

    Implements RecurrenceExpander protocol.
    """

    def __init__(self, max_occurrences: int | None = None):
        """
        Args:
            max_occurrences: Cap on occurrences returned per rule. None for no cap.
        """
        self.max_occurrences = max_occurrences

    def expand(self, rule: Any, window_start: datetime, window_end: datetime) -> list[datetime]:
        """Occurrence starts between window_start and window_end (inclusive), in order.

        rule is a dateutil rrule/rruleset, or an RFC 5545 string carrying its
        own DTSTART line.
        """
        if isinstance(rule, str):
            rule = rrulestr(rule, forceset=True)

        starts = rule.between(window_start, window_end, inc=True)

        if self.max_occurrences is not None and len(starts) > self.max_occurrences:
            logger.warning(
                f"Rule produced {len(starts)} occurrences, keeping first {self.max_occurrences}"
            )
            starts = starts[: self.max_occurrences]
        return starts
