import time
from datetime import datetime, timedelta

import anyio
import pytest

from app.clock import utcnow
from services.scheduler import RECENT_RUN_WINDOW, ScheduledJob, Scheduler, default_jobs


def _job(name="nightly", func=lambda: {"ok": True}, **schedule):
    schedule.setdefault("hour", 0)
    schedule.setdefault("minute", 15)
    return ScheduledJob(name, func, **schedule)


# =============================================================================
# SCHEDULES
# =============================================================================


def test_daily_job_is_due_only_at_its_minute():
    job = _job(hour=20, minute=0)
    assert job.is_due(datetime(2026, 3, 10, 20, 0, 30)) is True
    assert job.is_due(datetime(2026, 3, 10, 20, 1)) is False
    assert job.is_due(datetime(2026, 3, 10, 8, 0)) is False


def test_weekly_job_checks_weekday():
    job = _job(hour=10, minute=0, weekday=6)
    assert job.is_due(datetime(2026, 3, 15, 10, 0)) is True  # Sunday
    assert job.is_due(datetime(2026, 3, 16, 10, 0)) is False


def test_every_minute_job():
    job = ScheduledJob("tick", lambda: None)
    assert job.every_minute is True
    assert job.is_due(datetime(2026, 3, 10, 3, 7)) is True
    assert job.next_run(datetime(2026, 3, 10, 3, 7, 42)) == datetime(2026, 3, 10, 3, 8)


def test_interval_job_runs_on_aligned_minutes():
    job = ScheduledJob("water", lambda: None, interval=30)
    assert job.repeating is True
    assert job.is_due(datetime(2026, 3, 10, 9, 30)) is True
    assert job.is_due(datetime(2026, 3, 10, 9, 45)) is False
    assert job.next_run(datetime(2026, 3, 10, 9, 31)) == datetime(2026, 3, 10, 10, 0)


def test_next_run():
    daily = _job(hour=0, minute=15)
    assert daily.next_run(datetime(2026, 3, 10, 0, 10)) == datetime(2026, 3, 10, 0, 15)
    assert daily.next_run(datetime(2026, 3, 10, 0, 15)) == datetime(2026, 3, 11, 0, 15)

    weekly = _job(hour=10, minute=0, weekday=6)
    assert weekly.next_run(datetime(2026, 3, 10, 12, 0)) == datetime(2026, 3, 15, 10, 0)


def test_default_jobs():
    jobs = {job.name: job for job in default_jobs()}
    assert (jobs["menu_expiration"].hour, jobs["menu_expiration"].minute) == (0, 15)
    assert jobs["weekly_reports"].weekday == 6
    assert jobs["streak_reminders"].hour == 20
    assert jobs["meal_reminders"].every_minute is True
    assert jobs["ai_recommendations"].hour == 6
    assert jobs["water_reminders"].interval == 30
    assert jobs["water_reminders"].every_minute is False


def test_due_jobs():
    scheduler = Scheduler(jobs=[_job("a", hour=1, minute=0), ScheduledJob("b", lambda: None)], startup_delay=0)
    assert scheduler.due_jobs(datetime(2026, 3, 10, 1, 0)) == ["a", "b"]
    assert scheduler.due_jobs(datetime(2026, 3, 10, 2, 0)) == ["b"]


# =============================================================================
# EXECUTION
# =============================================================================


def test_run_job_safely_records_result():
    scheduler = Scheduler(jobs=[_job(func=lambda: {"deactivated": 2})], startup_delay=0)

    assert anyio.run(scheduler.run_job_safely, "nightly") == "completed"

    record = scheduler.last_runs["nightly"]
    assert record["result"] == {"deactivated": 2}
    assert record["finished_at"] is not None
    assert scheduler.current_job is None


def test_recent_run_is_skipped_unless_forced():
    calls = []
    scheduler = Scheduler(jobs=[_job(func=lambda: calls.append(1))], startup_delay=0)

    assert anyio.run(scheduler.run_job_safely, "nightly") == "completed"
    assert anyio.run(scheduler.run_job_safely, "nightly") == "skipped_recent"
    assert anyio.run(scheduler.run_job_safely, "nightly", True) == "completed"
    assert len(calls) == 2


def test_recent_window_expires():
    scheduler = Scheduler(jobs=[_job()], startup_delay=0)
    scheduler.last_runs["nightly"] = {
        "started_at": utcnow() - RECENT_RUN_WINDOW - timedelta(minutes=1),
        "finished_at": None,
        "status": "completed",
        "result": None,
    }
    assert anyio.run(scheduler.run_job_safely, "nightly") == "completed"


def test_every_minute_job_is_never_skipped_as_recent():
    scheduler = Scheduler(jobs=[ScheduledJob("tick", lambda: None)], startup_delay=0)
    assert anyio.run(scheduler.run_job_safely, "tick") == "completed"
    assert anyio.run(scheduler.run_job_safely, "tick") == "completed"


def test_busy_scheduler_skips():
    scheduler = Scheduler(jobs=[_job()], startup_delay=0)
    scheduler.current_job = "other"
    assert anyio.run(scheduler.run_job_safely, "nightly") == "skipped_busy"


def test_repeating_job_runs_while_daily_job_is_busy():
    scheduler = Scheduler(jobs=[_job(), ScheduledJob("tick", lambda: None)], startup_delay=0)
    scheduler.current_job = "nightly"
    assert anyio.run(scheduler.run_job_safely, "tick") == "completed"
    assert scheduler.current_job == "nightly"


def test_daily_job_runs_while_reminders_are_running():
    scheduler = Scheduler(jobs=[_job(), ScheduledJob("tick", lambda: None)], startup_delay=0)
    scheduler.running_repeating.add("tick")
    assert anyio.run(scheduler.run_job_safely, "nightly") == "completed"
    assert scheduler.current_job is None


def test_repeating_job_does_not_overlap_itself():
    scheduler = Scheduler(jobs=[ScheduledJob("tick", lambda: None)], startup_delay=0)
    scheduler.running_repeating.add("tick")
    assert anyio.run(scheduler.run_job_safely, "tick") == "skipped_busy"


@pytest.mark.parametrize(
    "moment, daily_job",
    [
        (datetime(2026, 3, 11, 20, 0), "streak_reminders"),
        (datetime(2026, 3, 11, 0, 15), "menu_expiration"),
        (datetime(2026, 3, 15, 10, 0), "weekly_reports"),
        (datetime(2026, 3, 11, 6, 0), "ai_recommendations"),
    ],
)
def test_jobs_due_in_the_same_minute_all_run(moment, daily_job):
    calls = []
    jobs = default_jobs()
    for job in jobs:
        def record(name=job.name):
            time.sleep(0.05)
            calls.append(name)
            return {"sent": 0}

        job.func = record
    scheduler = Scheduler(jobs=jobs, startup_delay=0)

    statuses = anyio.run(scheduler.tick, moment)

    assert statuses[daily_job] == "completed"
    assert statuses["meal_reminders"] == "completed"
    assert set(statuses.values()) == {"completed"}
    assert sorted(calls) == sorted(statuses)
    assert scheduler.current_job is None
    assert scheduler.running_repeating == set()


def test_failed_job_is_recorded():
    def boom():
        raise RuntimeError("connection lost")

    scheduler = Scheduler(jobs=[_job(func=boom)], startup_delay=0)

    assert anyio.run(scheduler.run_job_safely, "nightly") == "failed"
    assert scheduler.last_runs["nightly"]["result"] == {"error": "connection lost"}
    assert scheduler.current_job is None


def test_run_job_by_name():
    scheduler = Scheduler(jobs=[_job(func=lambda: {"sent": 3})], startup_delay=0)

    result = anyio.run(scheduler.run_job, "nightly")

    assert result["job"] == "nightly"
    assert result["status"] == "completed"
    assert result["last_run"]["result"] == {"sent": 3}

    with pytest.raises(KeyError):
        anyio.run(scheduler.run_job, "unknown")


def test_startup_runs_expiration_then_recommendations():
    calls = []
    scheduler = Scheduler(
        jobs=[
            _job("ai_recommendations", func=lambda: calls.append("recommend"), hour=6, minute=0),
            _job("menu_expiration", func=lambda: calls.append("expire")),
        ],
        startup_delay=0,
    )
    anyio.run(scheduler.run_startup_tasks)
    assert calls == ["expire", "recommend"]


def test_run_loop_starts_and_stops():
    calls = []
    scheduler = Scheduler(jobs=[ScheduledJob("tick", lambda: calls.append(1))], startup_delay=0)

    async def main():
        with anyio.move_on_after(0.5):
            await scheduler.run()

    anyio.run(main)

    assert calls
    assert scheduler.is_running is False


def test_status_lists_next_runs():
    scheduler = Scheduler(jobs=[_job()], startup_delay=0)
    anyio.run(scheduler.run_job_safely, "nightly")

    status = scheduler.get_status()

    assert status["is_running"] is False
    assert status["last_runs"]["nightly"]["status"] == "completed"
    assert "nightly" in status["next_runs"]
