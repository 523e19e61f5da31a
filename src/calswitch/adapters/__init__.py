"""Adapters - I/O implementations of ports."""

from .dateutil_rrule import DateutilRecurrenceExpander
from .ics_feed import IcsFeedSource
from .composite_source import CompositeEventSource
from .command_actuator import CommandActuator

__all__ = [
    "DateutilRecurrenceExpander",
    "IcsFeedSource",
    "CompositeEventSource",
    "CommandActuator",
]
