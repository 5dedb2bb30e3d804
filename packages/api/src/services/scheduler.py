# This project was developed with assistance from AI tools.
"""Job scheduler.

An explicit ``Scheduler`` object owns the registry of named jobs. Cadence is
a structured ``JobSchedule`` value turned into an APScheduler ``CronTrigger``
only when a job is started. Job failures never escape: they are logged and
sent to administrators as a system notification, and the job simply waits
for its next slot.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from db.enums import NotificationPriority, NotificationType
from pydantic import BaseModel

from ..schemas.notification import NotificationCreate
from ..schemas.scheduler import JobRunResult, JobStatus

logger = logging.getLogger(__name__)

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

JobHandler = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class JobSchedule:
    """Time of day plus an optional set of weekdays (0 = Monday), in one timezone."""

    hour: int
    minute: int = 0
    days_of_week: frozenset[int] | None = None
    timezone: str = "UTC"

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"invalid time of day {self.hour}:{self.minute}")
        if self.days_of_week is not None and (
            not self.days_of_week or not all(0 <= d <= 6 for d in self.days_of_week)
        ):
            raise ValueError(f"invalid days_of_week {sorted(self.days_of_week)}")

    @classmethod
    def daily(cls, hour: int, minute: int = 0, *, timezone: str = "UTC") -> "JobSchedule":
        return cls(hour=hour, minute=minute, timezone=timezone)

    @classmethod
    def weekly(
        cls, weekday: int, hour: int, minute: int = 0, *, timezone: str = "UTC"
    ) -> "JobSchedule":
        return cls(hour=hour, minute=minute, days_of_week=frozenset({weekday}), timezone=timezone)

    def _cron_days(self) -> str:
        if self.days_of_week is None:
            return "*"
        return ",".join(WEEKDAYS[d] for d in sorted(self.days_of_week))

    def to_trigger(self) -> CronTrigger:
        return CronTrigger(
            day_of_week=self._cron_days(),
            hour=self.hour,
            minute=self.minute,
            timezone=self.timezone,
        )

    def describe(self) -> str:
        days = "daily" if self.days_of_week is None else self._cron_days()
        return f"{days} {self.hour:02d}:{self.minute:02d} {self.timezone}"


@dataclass
class ScheduledJob:
    name: str
    schedule: JobSchedule
    handler: JobHandler
    description: str = ""
    notify_on_success: bool = False
    running: bool = False
    last_result: JobRunResult | None = field(default=None, repr=False)


class UnknownJobError(KeyError):
    """No job registered under that name."""


def _result_payload(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return value
    return {"value": value}


class Scheduler:
    """Registry of named jobs backed by an APScheduler ``AsyncIOScheduler``."""

    def __init__(
        self,
        emitter=None,
        *,
        timezone: str = "UTC",
        backend: AsyncIOScheduler | None = None,
    ):
        self._emitter = emitter
        self._timezone = timezone
        self._backend = backend or AsyncIOScheduler(timezone=timezone)
        self._jobs: dict[str, ScheduledJob] = {}

    @property
    def timezone(self) -> str:
        return self._timezone

    def register(
        self,
        name: str,
        schedule: JobSchedule,
        handler: JobHandler,
        *,
        description: str = "",
        notify_on_success: bool = False,
    ) -> ScheduledJob:
        """Add or replace a job. Does not start it."""
        existing = self._jobs.get(name)
        job = ScheduledJob(
            name=name,
            schedule=schedule,
            handler=handler,
            description=description,
            notify_on_success=notify_on_success,
            running=existing.running if existing else False,
        )
        self._jobs[name] = job
        if job.running:
            self._backend.reschedule_job(name, trigger=schedule.to_trigger())
        logger.debug("Registered job '%s' (%s)", name, schedule.describe())
        return job

    def get(self, name: str) -> ScheduledJob:
        try:
            return self._jobs[name]
        except KeyError:
            raise UnknownJobError(name) from None

    def start_all(self) -> None:
        if not self._backend.running:
            self._backend.start()
        for job in self._jobs.values():
            if job.running:
                continue
            self._backend.add_job(
                self._scheduled_run,
                trigger=job.schedule.to_trigger(),
                args=[job.name],
                id=job.name,
                name=job.name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            job.running = True
            logger.info("Job '%s' started (%s)", job.name, job.schedule.describe())

    def stop_all(self) -> None:
        for job in self._jobs.values():
            if not job.running:
                continue
            if self._backend.get_job(job.name) is not None:
                self._backend.remove_job(job.name)
            job.running = False
            logger.info("Job '%s' stopped", job.name)

    def shutdown(self) -> None:
        self.stop_all()
        if self._backend.running:
            self._backend.shutdown(wait=False)

    def status(self) -> list[JobStatus]:
        statuses = []
        for job in self._jobs.values():
            next_run = None
            if job.running:
                backend_job = self._backend.get_job(job.name)
                next_run = getattr(backend_job, "next_run_time", None)
            statuses.append(
                JobStatus(
                    name=job.name,
                    running=job.running,
                    schedule=job.schedule.describe(),
                    next_run_at=next_run,
                    last_run=job.last_result,
                )
            )
        return statuses

    async def run_manually(self, name: str) -> JobRunResult:
        """Run a job once now, whether or not it is started."""
        job = self.get(name)
        logger.info("Manual run of job '%s'", name)
        return await self._execute(job)

    async def _scheduled_run(self, name: str) -> None:
        job = self._jobs.get(name)
        if job is None:
            logger.warning("Scheduled run for unregistered job '%s' ignored", name)
            return
        await self._execute(job)

    async def _execute(self, job: ScheduledJob) -> JobRunResult:
        started = time.monotonic()
        try:
            value = await job.handler()
        except Exception as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.exception("Job '%s' failed after %d ms", job.name, duration_ms)
            result = JobRunResult(
                job_name=job.name,
                status="failed",
                duration_ms=duration_ms,
                error=f"{type(exc).__name__}: {exc}",
            )
            await self._notify_failure(job, result)
        else:
            duration_ms = int((time.monotonic() - started) * 1000)
            result = JobRunResult(
                job_name=job.name,
                status="success",
                duration_ms=duration_ms,
                result=_result_payload(value),
            )
            logger.info("Job '%s' completed in %d ms", job.name, duration_ms)
            if job.notify_on_success:
                await self._notify_success(job, result)
        job.last_result = result
        return result

    async def _notify_failure(self, job: ScheduledJob, result: JobRunResult) -> None:
        if self._emitter is None:
            return
        try:
            await self._emitter.notify_system_error(
                f"Error en trabajo programado '{job.name}': {result.error}",
                {"job_name": job.name, "error": result.error},
            )
        except Exception:
            logger.exception("Could not notify admins about job '%s' failure", job.name)

    async def _notify_success(self, job: ScheduledJob, result: JobRunResult) -> None:
        if self._emitter is None:
            return
        try:
            await self._emitter.notify_admins(
                NotificationCreate(
                    title="Trabajo completado",
                    message=f"El trabajo '{job.name}' se completó en {result.duration_ms} ms.",
                    type=NotificationType.SYSTEM,
                    priority=NotificationPriority.LOW,
                    data={"job_name": job.name, "result": result.result or {}},
                )
            )
        except Exception:
            logger.exception("Could not notify admins about job '%s' completion", job.name)
