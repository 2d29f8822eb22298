"""
Background Jobs - ingestion scheduling
"""
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime
import logging

from f95rss.constants import INGEST_JOB_ID
from f95rss.exceptions import ConfigError

logger = logging.getLogger('main')


def build_trigger(expression, timezone=None):
    """Parse a five-field crontab expression into a trigger. Raises ConfigError."""
    try:
        return CronTrigger.from_crontab(expression, timezone=timezone)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Invalid schedule expression {expression!r}: {e}") from e


class JobScheduler:
    """Runs the ingestion cycle on a cron schedule, never two at once"""

    def __init__(self, scheduler=None):
        self.scheduler = scheduler or BackgroundScheduler()
        self._jobs_registered = False
        self.scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES)

    def init_app(self, app, service, expression, run_on_start=False):
        """Register the ingestion job for ``app`` and start the scheduler"""
        self._register_jobs(app, service, expression, run_on_start)
        self.scheduler.start()
        logger.info("Job scheduler initialized")

    def _register_jobs(self, app, service, expression, run_on_start=False):
        """Register all scheduled jobs"""
        if self._jobs_registered:
            return

        trigger = build_trigger(expression)

        # Single-flight: an overlapping firing is dropped, not queued
        self.scheduler.add_job(
            func=self._ingest_job,
            trigger=trigger,
            id=INGEST_JOB_ID,
            name='Update games',
            args=[app, service],
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        if run_on_start:
            self.scheduler.add_job(
                func=self._ingest_job,
                trigger='date',
                run_date=datetime.now(),
                id=f'{INGEST_JOB_ID}_startup',
                name='Update games (startup)',
                args=[app, service],
                replace_existing=True,
            )

        self._jobs_registered = True
        logger.info(f"Background jobs registered (schedule: {expression})")

    def _ingest_job(self, app, service):
        """Ingestion task, run inside the app context for the store session"""
        with app.app_context():
            return service.run_cycle()

    def _on_job_event(self, event):
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.warning(f"Job {event.job_id} still running, skipped overlapping firing")
        elif event.exception is not None:
            logger.error(f"Job {event.job_id} raised: {event.exception}")

    def next_run_time(self):
        job = self.scheduler.get_job(INGEST_JOB_ID)
        return job.next_run_time if job else None

    def shutdown(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Job scheduler shutdown")
