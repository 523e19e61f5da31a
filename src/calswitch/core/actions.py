"""Pure action-building logic - no I/O dependencies.

Turns calendar events into a flat timeline of on/off actions.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from calswitch.ports.recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)

EVENT_TYPE = "VEVENT"
DEFAULT_LOOKAHEAD = timedelta(days=7)

Occurrence = tuple[datetime, datetime, str]


@dataclass
class CalendarEvent:
    """A calendar entry as produced by an event source."""

    summary: str
    start: datetime | None
    end: datetime | None
    rrule: Any = None
    type: str = EVENT_TYPE

    @property
    def is_recurring(self) -> bool:
        return self.rrule is not None

    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Action:
    """A single on/off transition."""

    date: datetime
    expires: datetime
    state: bool
    summary: str


@dataclass(frozen=True)
class SkippedEntry:
    """Why an entry was left out of the timeline."""

    key: Any
    summary: str
    reason: str


def _entries(events: Mapping[Any, CalendarEvent] | Iterable[CalendarEvent]) -> list[tuple[Any, CalendarEvent]]:
    if isinstance(events, Mapping):
        return list(events.items())
    return list(enumerate(events))


def _skip_reason(event: Any) -> str | None:
    """Return why an entry can't produce occurrences, or None if it can."""
    if getattr(event, "type", None) != EVENT_TYPE:
        return f"unsupported type {getattr(event, 'type', None)!r}"
    if getattr(event, "start", None) is None:
        return "missing start"
    if getattr(event, "end", None) is None:
        return "missing end"
    return None


def _usable(
    key: Any,
    event: Any,
    skipped: list[SkippedEntry] | None,
) -> bool:
    reason = _skip_reason(event)
    if reason is None:
        return True
    summary = getattr(event, "summary", "") or ""
    logger.debug(f"Skipping calendar entry {key!r} ({summary}): {reason}")
    if skipped is not None:
        skipped.append(SkippedEntry(key=key, summary=summary, reason=reason))
    return False


def expand_non_recurring(
    events: Mapping[Any, CalendarEvent] | Iterable[CalendarEvent],
    skipped: list[SkippedEntry] | None = None,
) -> list[Occurrence]:
    """
    Collect the single occurrence of every non-recurring event.

    Recurring events are left for expand_recurring.
    Pure function - no I/O.
    """
    occurrences = []
    for key, event in _entries(events):
        if getattr(event, "rrule", None) is not None:
            continue
        if not _usable(key, event, skipped):
            continue
        occurrences.append((event.start, event.end, event.summary))
    return occurrences


def expand_recurring(
    events: Mapping[Any, CalendarEvent] | Iterable[CalendarEvent],
    window_start: datetime,
    window_end: datetime | None = None,
    expander: "RecurrenceExpander | None" = None,
    skipped: list[SkippedEntry] | None = None,
    include_in_progress: bool = False,
) -> list[Occurrence]:
    """
    Expand every recurring event into its occurrences within a window.

    Args:
        events: Calendar entries, as a mapping (keys ignored) or an iterable
        window_start: Earliest occurrence start to enumerate (inclusive)
        window_end: Latest occurrence start to enumerate (inclusive),
            defaults to window_start + DEFAULT_LOOKAHEAD
        expander: Recurrence engine, defaults to the dateutil one
        skipped: Optional list collecting entries that were left out
        include_in_progress: Also return an occurrence that started before
            window_start but has not ended by then

    Returns:
        (start, end, summary) tuples, in rule enumeration order per event.
        Each occurrence keeps the duration of the original event.

    Errors raised by the expander are not caught.
    """
    if window_end is None:
        window_end = window_start + DEFAULT_LOOKAHEAD
    if expander is None:
        from calswitch.adapters.dateutil_rrule import DateutilRecurrenceExpander

        expander = DateutilRecurrenceExpander()

    occurrences = []
    for key, event in _entries(events):
        if getattr(event, "rrule", None) is None:
            continue
        if not _usable(key, event, skipped):
            continue

        duration = event.duration()
        first = window_start - duration if include_in_progress else window_start
        starts = expander.expand(event.rrule, first, window_end)
        for start in starts:
            if start < window_start and start + duration <= window_start:
                continue
            occurrences.append((start, start + duration, event.summary))
    return occurrences


def build_action_pair(start: datetime, end: datetime, summary: str) -> tuple[Action, Action]:
    """Activate at start, deactivate at end; both expire at end."""
    return (
        Action(date=start, expires=end, state=True, summary=summary),
        Action(date=end, expires=end, state=False, summary=summary),
    )


def build_actions(occurrences: Iterable[Occurrence]) -> list[Action]:
    """Turn occurrences into actions, keeping each on/off pair adjacent."""
    actions = []
    for start, end, summary in occurrences:
        actions.extend(build_action_pair(start, end, summary))
    return actions


def sort_actions_by_date(actions: Iterable[Action]) -> list[Action]:
    """Sort actions by date. Stable, so same-date actions keep generation order."""
    return sorted(actions, key=lambda a: a.date)


def filter_expired(actions: Iterable[Action], now: datetime) -> list[Action]:
    """Keep only actions that expire strictly after now."""
    return [a for a in actions if a.expires > now]


def generate_actions(
    events: Mapping[Any, CalendarEvent] | Iterable[CalendarEvent],
    now: datetime,
    lookahead: timedelta = DEFAULT_LOOKAHEAD,
    expander: "RecurrenceExpander | None" = None,
    skipped: list[SkippedEntry] | None = None,
) -> list[Action]:
    """
    Build the sorted, unexpired action timeline for a set of events.

    Recurring events are expanded from now up to now + lookahead, plus any
    occurrence already in progress at now.
    Malformed or unsupported entries are skipped without affecting the rest.

    Pure function - no I/O.
    """
    entries = _entries(events)
    occurrences = expand_non_recurring(dict(entries), skipped)
    occurrences += expand_recurring(
        dict(entries),
        window_start=now,
        window_end=now + lookahead,
        expander=expander,
        skipped=skipped,
        include_in_progress=True,
    )
    actions = build_actions(occurrences)
    return filter_expired(sort_actions_by_date(actions), now)


def current_state(actions: Iterable[Action], now: datetime) -> bool:
    """Whether an occurrence is in progress at now."""
    return any(a.state and a.date <= now < a.expires for a in actions)
