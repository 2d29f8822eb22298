"""
Tests for the ingestion job scheduler
"""
import pytest
from unittest.mock import MagicMock

from apscheduler.schedulers.background import BackgroundScheduler

from f95rss.constants import INGEST_JOB_ID
from f95rss.exceptions import ConfigError
from f95rss.jobs.scheduler import JobScheduler, build_trigger


def test_build_trigger_rejects_bad_expression():
    with pytest.raises(ConfigError):
        build_trigger('not a cron')


def test_job_is_single_flight(app):
    job_scheduler = JobScheduler(BackgroundScheduler())
    job_scheduler._register_jobs(app, MagicMock(), '*/30 * * * *')

    job = job_scheduler.scheduler.get_job(INGEST_JOB_ID)
    assert job is not None
    assert job.max_instances == 1
    assert job.coalesce is True


def test_run_on_start_adds_one_off_job(app):
    job_scheduler = JobScheduler(BackgroundScheduler())
    job_scheduler._register_jobs(app, MagicMock(), '*/30 * * * *', run_on_start=True)

    assert job_scheduler.scheduler.get_job(f'{INGEST_JOB_ID}_startup') is not None


def test_jobs_registered_once(app):
    job_scheduler = JobScheduler(BackgroundScheduler())
    job_scheduler._register_jobs(app, MagicMock(), '*/30 * * * *')
    job_scheduler._register_jobs(app, MagicMock(), 'garbage')

    assert len(job_scheduler.scheduler.get_jobs()) == 1


def test_job_runs_cycle_in_app_context(app):
    from flask import current_app

    service = MagicMock()
    service.run_cycle.side_effect = lambda: current_app.name

    assert JobScheduler(BackgroundScheduler())._ingest_job(app, service) == app.name


def test_init_app_starts_and_shutdown_stops(app):
    job_scheduler = JobScheduler(BackgroundScheduler())
    job_scheduler.init_app(app, MagicMock(), '0 0 1 1 *')
    try:
        assert job_scheduler.scheduler.running
        assert job_scheduler.next_run_time() is not None
    finally:
        job_scheduler.shutdown()

    assert not job_scheduler.scheduler.running
