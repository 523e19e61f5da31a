"""Shared workflow layer between the CLI and the scheduler."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from .adapters.command_actuator import CommandActuator
from .adapters.composite_source import CompositeEventSource
from .adapters.dateutil_rrule import DateutilRecurrenceExpander
from .config import Config
from .core.actions import Action, SkippedEntry, generate_actions
from .ports import EventSource

logger = logging.getLogger(__name__)


def get_event_source(config: Config) -> CompositeEventSource:
    """Build the event source for all configured feeds."""
    if not config.feeds:
        raise ValueError("FEEDS not configured. Add at least one calendar URL or path to calswitch.conf")
    return CompositeEventSource.from_config(config)


def get_actuator(config: Config) -> CommandActuator:
    return CommandActuator(
        on_command=config.on_command,
        off_command=config.off_command,
        timeout=config.request_timeout,
    )


def current_time(config: Config) -> datetime:
    """Now, in the configured timezone."""
    return datetime.now(ZoneInfo(config.timezone))


def fetch_actions(
    config: Config,
    now: datetime | None = None,
    source: EventSource | None = None,
    skipped: list[SkippedEntry] | None = None,
) -> list[Action]:
    """Fetch events and build the pending action timeline."""
    if now is None:
        now = current_time(config)
    if source is None:
        source = get_event_source(config)

    events = source.fetch_events()
    actions = generate_actions(
        events,
        now,
        lookahead=config.lookahead,
        expander=DateutilRecurrenceExpander(),
        skipped=skipped,
    )
    logger.info(f"Built {len(actions)} actions from {len(events)} calendar entries")
    return actions
