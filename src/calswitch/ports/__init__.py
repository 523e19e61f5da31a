"""Ports - interfaces/protocols for external dependencies."""

from .recurrence import RecurrenceExpander
from .event_source import EventSource
from .actuator import Actuator

__all__ = [
    "RecurrenceExpander",
    "EventSource",
    "Actuator",
]
