"""Functional core - pure business logic with no I/O."""

from .actions import (
    Action,
    CalendarEvent,
    SkippedEntry,
    build_action_pair,
    build_actions,
    current_state,
    expand_non_recurring,
    expand_recurring,
    filter_expired,
    generate_actions,
    sort_actions_by_date,
)

__all__ = [
    "Action",
    "CalendarEvent",
    "SkippedEntry",
    "build_action_pair",
    "build_actions",
    "current_state",
    "expand_non_recurring",
    "expand_recurring",
    "filter_expired",
    "generate_actions",
    "sort_actions_by_date",
]
