"""Action scheduler - dispatches calendar actions to an actuator."""

import logging
from collections.abc import Callable
from datetime import datetime

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .config import Config
from .core.actions import Action, current_state
from .ports import Actuator
from .workflows import current_time, fetch_actions

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh"
ACTION_JOB_PREFIX = "action-"


def single_worker_executors() -> dict:
    """Executors that run action jobs one at a time."""
    return {"default": ThreadPoolExecutor(max_workers=1)}


def group_by_date(actions: list[Action]) -> list[list[Action]]:
    """Split a sorted timeline into runs of actions sharing a date, keeping order."""
    groups: list[list[Action]] = []
    for action in actions:
        if groups and groups[-1][0].date == action.date:
            groups[-1].append(action)
        else:
            groups.append([action])
    return groups


class ActionScheduler:
    """
    Polls the calendar and schedules one job per pending instant.

    Actions sharing a date collapse into a single job applying the last of
    them, so back-to-back events end in the right state. The action list is
    rebuilt from scratch on every refresh.
    """

    def __init__(
        self,
        config: Config,
        actuator: Actuator,
        scheduler: BaseScheduler | None = None,
        fetch: Callable[[Config, datetime], list[Action]] | None = None,
    ):
        self.config = config
        self.actuator = actuator
        self.scheduler = scheduler or BackgroundScheduler(
            timezone=config.timezone,
            executors=single_worker_executors(),
        )
        self._fetch = fetch or fetch_actions
        self._action_job_ids: list[str] = []

    def refresh(self, now: datetime | None = None) -> list[Action]:
        """Rebuild the action list and reschedule its jobs."""
        if now is None:
            now = current_time(self.config)

        actions = self._fetch(self.config, now)
        self._clear_action_jobs()

        self.actuator.set_state(current_state(actions, now), "calendar refresh")

        for index, group in enumerate(group_by_date(actions)):
            last = group[-1]
            if last.date <= now:
                continue
            job_id = f"{ACTION_JOB_PREFIX}{index:05d}"
            self.scheduler.add_job(
                self.actuator.set_state,
                DateTrigger(run_date=last.date),
                args=[last.state, last.summary],
                id=job_id,
                replace_existing=True,
                misfire_grace_time=None,
                coalesce=True,
            )
            self._action_job_ids.append(job_id)

        logger.info(f"Scheduled {len(self._action_job_ids)} transitions for {len(actions)} actions")
        return actions

    def _clear_action_jobs(self) -> None:
        for job_id in self._action_job_ids:
            try:
                self.scheduler.remove_job(job_id)
            except JobLookupError:
                # Already ran
                continue
        self._action_job_ids = []

    def start(self) -> None:
        """Refresh now, then every poll interval."""
        self.scheduler.add_job(
            self.refresh,
            IntervalTrigger(minutes=self.config.poll_interval_minutes),
            id=REFRESH_JOB_ID,
            replace_existing=True,
        )
        logger.info(f"Polling calendar every {self.config.poll_interval_minutes} minutes")
        self.refresh()
        self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
