import pytest

from serilovers.scheduler import BACKFILL_JOB_ID, get_next_run_time, scheduler, update_schedule


@pytest.fixture(autouse=True)
def clear_schedule():
    update_schedule(0)
    yield
    update_schedule(0)


def test_interval_schedule_adds_backfill_job():
    update_schedule(6)

    job = scheduler.get_job(BACKFILL_JOB_ID)
    assert job is not None
    assert job.trigger.interval.total_seconds() == 6 * 3600


def test_rescheduling_replaces_job():
    update_schedule(6)
    update_schedule(2)

    jobs = [job for job in scheduler.get_jobs() if job.id == BACKFILL_JOB_ID]
    assert len(jobs) == 1
    assert jobs[0].trigger.interval.total_seconds() == 2 * 3600


def test_zero_interval_disables_backfill():
    update_schedule(6)
    update_schedule(0)

    assert scheduler.get_job(BACKFILL_JOB_ID) is None
    assert get_next_run_time() is None
