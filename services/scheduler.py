"""
In-process job scheduler.

Runs inside the FastAPI lifespan on an anyio task group, wakes up at the top
of every minute and starts the jobs whose schedule matches. Job bodies are
blocking database work and run in worker threads.

Daily jobs run one at a time. Repeating jobs (reminders) only guard against
overlapping with their own previous run, so a long daily job never holds
them back and they never push a daily job out of its minute.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

import anyio

from app.clock import utcnow
from app.config import settings
from domain.models import SessionLocal
from services import scheduled_notifications
from services.menu_expiration_service import MenuExpirationService
from services.recommendation_service import run_daily_recommendations

logger = logging.getLogger("calo.scheduler")

RECENT_RUN_WINDOW = timedelta(minutes=30)
SUNDAY = 6
STARTUP_JOBS = ("menu_expiration", "ai_recommendations")


@dataclass
class ScheduledJob:
    """A job and when it runs.

    Daily jobs set hour and minute, weekly ones also a weekday. A job with
    neither repeats every `interval` minutes, aligned to the hour.
    """

    name: str
    func: Callable[[], Any]
    hour: Optional[int] = None
    minute: Optional[int] = None
    weekday: Optional[int] = None
    interval: int = 1

    @property
    def repeating(self) -> bool:
        return self.hour is None and self.minute is None

    @property
    def every_minute(self) -> bool:
        return self.repeating and self.interval == 1

    def is_due(self, moment: datetime) -> bool:
        if self.repeating:
            return moment.minute % self.interval == 0
        if self.weekday is not None and moment.weekday() != self.weekday:
            return False
        return moment.hour == self.hour and moment.minute == (self.minute or 0)

    def next_run(self, after: datetime) -> datetime:
        base = after.replace(second=0, microsecond=0)
        if self.repeating:
            candidate = base + timedelta(minutes=1)
            while candidate.minute % self.interval:
                candidate += timedelta(minutes=1)
            return candidate
        candidate = base.replace(hour=self.hour, minute=self.minute or 0)
        if candidate <= after:
            candidate += timedelta(days=1)
        while self.weekday is not None and candidate.weekday() != self.weekday:
            candidate += timedelta(days=1)
        return candidate


def run_menu_expiration() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return MenuExpirationService.run_expiration_check(db)
    finally:
        db.close()


def default_jobs() -> List[ScheduledJob]:
    return [
        ScheduledJob("menu_expiration", run_menu_expiration, hour=0, minute=15),
        ScheduledJob("ai_recommendations", run_daily_recommendations, hour=6, minute=0),
        ScheduledJob("weekly_reports", scheduled_notifications.run_weekly_reports, hour=10, minute=0, weekday=SUNDAY),
        ScheduledJob("streak_reminders", scheduled_notifications.run_streak_reminders, hour=20, minute=0),
        ScheduledJob("meal_reminders", scheduled_notifications.run_meal_reminders),
        ScheduledJob("water_reminders", scheduled_notifications.run_water_reminders, interval=30),
    ]


class Scheduler:
    """Minute-resolution scheduler; daily jobs run one at a time"""

    def __init__(self, jobs: Optional[List[ScheduledJob]] = None, startup_delay: Optional[float] = None):
        self.jobs: Dict[str, ScheduledJob] = {job.name: job for job in (jobs if jobs is not None else default_jobs())}
        self.startup_delay = settings.scheduler_startup_delay_sec if startup_delay is None else startup_delay
        self.is_running = False
        self.current_job: Optional[str] = None
        self.running_repeating: Set[str] = set()
        self.last_runs: Dict[str, Dict[str, Any]] = {}

    async def run_job_safely(self, name: str, force: bool = False) -> str:
        """Run one job unless it is blocked or ran in the last 30 minutes.

        A daily job is blocked while another daily job runs; a repeating job
        only while its own previous run is still going. Repeating jobs and
        forced runs skip the recent-run check. Returns one of "completed",
        "failed", "skipped_busy", "skipped_recent".
        """
        job = self.jobs[name]
        if job.repeating:
            if name in self.running_repeating:
                logger.info("Skipping %s: previous run still in progress", name)
                return "skipped_busy"
        elif self.current_job is not None:
            logger.info("Skipping %s: %s is running", name, self.current_job)
            return "skipped_busy"

        now = utcnow()
        previous = self.last_runs.get(name)
        if (
            not force
            and not job.repeating
            and previous is not None
            and now - previous["started_at"] < RECENT_RUN_WINDOW
        ):
            logger.info("Skipping %s: ran at %s", name, previous["started_at"])
            return "skipped_recent"

        if job.repeating:
            self.running_repeating.add(name)
        else:
            self.current_job = name
        record: Dict[str, Any] = {"started_at": now, "finished_at": None, "status": "running", "result": None}
        self.last_runs[name] = record
        try:
            if not job.every_minute:
                logger.info("Starting job %s", name)
            record["result"] = await anyio.to_thread.run_sync(job.func)
            record["status"] = "completed"
        except Exception as e:
            logger.exception("Job %s failed", name)
            record["status"] = "failed"
            record["result"] = {"error": str(e)}
        finally:
            record["finished_at"] = utcnow()
            if job.repeating:
                self.running_repeating.discard(name)
            else:
                self.current_job = None
        return record["status"]

    async def run_job(self, name: str) -> Dict[str, Any]:
        """Trigger a job by hand; raises KeyError for unknown jobs."""
        if name not in self.jobs:
            raise KeyError(name)
        status = await self.run_job_safely(name, force=True)
        return {"job": name, "status": status, "last_run": self._serialize_run(self.last_runs.get(name))}

    async def run_startup_tasks(self) -> None:
        await anyio.sleep(self.startup_delay)
        logger.info("Running startup tasks")
        for name in STARTUP_JOBS:
            if name in self.jobs:
                await self.run_job_safely(name)

    def due_jobs(self, moment: datetime) -> List[str]:
        return [job.name for job in self.jobs.values() if job.is_due(moment)]

    async def tick(self, moment: datetime) -> Dict[str, str]:
        """Start every job due at `moment` side by side; returns their statuses."""
        statuses: Dict[str, str] = {}

        async def start(name: str) -> None:
            statuses[name] = await self.run_job_safely(name)

        async with anyio.create_task_group() as tg:
            for name in self.due_jobs(moment):
                tg.start_soon(start, name)
        return statuses

    async def run(self) -> None:
        """Tick once per minute until cancelled."""
        self.is_running = True
        logger.info("Scheduler started with jobs: %s", ", ".join(self.jobs))
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self.run_startup_tasks)
                while True:
                    now = utcnow()
                    tg.start_soon(self.tick, now)
                    await anyio.sleep(60 - now.second - now.microsecond / 1_000_000)
        finally:
            self.is_running = False
            logger.info("Scheduler stopped")

    @staticmethod
    def _serialize_run(record: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if record is None:
            return None
        return {
            "started_at": record["started_at"].isoformat(),
            "finished_at": record["finished_at"].isoformat() if record["finished_at"] else None,
            "status": record["status"],
            "result": record["result"],
        }

    def get_status(self) -> Dict[str, Any]:
        now = utcnow()
        return {
            "is_running": self.is_running,
            "current_job": self.current_job,
            "running_repeating": sorted(self.running_repeating),
            "last_runs": {name: self._serialize_run(r) for name, r in self.last_runs.items()},
            "next_runs": {name: job.next_run(now).isoformat() for name, job in self.jobs.items()},
        }


scheduler = Scheduler()
