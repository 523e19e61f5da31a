"""calswitch CLI - calendar-driven switch."""

import json
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

import click

from .config import load_config
from .core.actions import Action, SkippedEntry
from .workflows import current_time, fetch_actions, get_actuator, get_event_source


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


@click.group()
@click.version_option()
def main():
    """calswitch - turn a switch on and off from calendar events."""
    pass


def _show_actions(actions: list[Action], as_json: bool) -> None:
    """Shared action display logic."""
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "date": a.date.isoformat(),
                        "expires": a.expires.isoformat(),
                        "state": a.state,
                        "summary": a.summary,
                    }
                    for a in actions
                ],
                indent=2,
            )
        )
        return

    if not actions:
        click.echo("No upcoming actions.")
        return

    for action in actions:
        label = "ON " if action.state else "OFF"
        click.echo(f"{action.date.strftime('%Y-%m-%d %H:%M')}  {label}  {action.summary}")


@main.command()
@click.option("--now", "now_str", default=None, help="Reference time (ISO 8601), defaults to now")
@click.option("--feed", "feeds", multiple=True, help="Calendar URL or path (overrides FEEDS)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--show-skipped", is_flag=True, help="List calendar entries that were ignored")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def actions(now_str: str | None, feeds: tuple[str, ...], as_json: bool, show_skipped: bool, debug: bool):
    """Show the pending on/off actions."""
    config = load_config()
    _setup_logging("DEBUG" if debug else "WARNING")
    if feeds:
        config.feeds = list(feeds)

    if now_str:
        try:
            now = datetime.fromisoformat(now_str)
        except ValueError:
            click.echo(f"Error: invalid --now value {now_str!r}", err=True)
            sys.exit(1)
        if now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo(config.timezone))
    else:
        now = current_time(config)

    try:
        source = get_event_source(config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    skipped: list[SkippedEntry] = []
    result = fetch_actions(config, now=now, source=source, skipped=skipped)
    _show_actions(result, as_json)

    if show_skipped and skipped:
        click.echo(f"\nSkipped entries ({len(skipped)}):", err=True)
        for entry in skipped:
            click.echo(f"  {entry.key}: {entry.summary or '(no summary)'} - {entry.reason}", err=True)


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def run(debug: bool):
    """Run the scheduler, switching on and off as events start and end."""
    from apscheduler.schedulers.blocking import BlockingScheduler

    from .scheduler import ActionScheduler, single_worker_executors

    config = load_config()
    _setup_logging("DEBUG" if debug else config.log_level)

    try:
        get_event_source(config)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    action_scheduler = ActionScheduler(
        config,
        get_actuator(config),
        scheduler=BlockingScheduler(timezone=config.timezone, executors=single_worker_executors()),
    )
    click.echo("Starting calswitch scheduler...")
    click.echo("Press Ctrl+C to stop")
    try:
        action_scheduler.start()
    except KeyboardInterrupt:
        click.echo("\nScheduler stopped.")
    finally:
        action_scheduler.shutdown()


if __name__ == "__main__":
    main()
