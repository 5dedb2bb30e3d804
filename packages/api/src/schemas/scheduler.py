# This project was developed with assistance from AI tools.
"""Scheduler status and manual run schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class JobRunResult(BaseModel):
    """Outcome of one job execution (manual or scheduled)."""

    job_name: str
    status: str  # "success" or "failed"
    duration_ms: int
    result: dict[str, Any] | None = None
    error: str | None = None


class JobStatus(BaseModel):
    name: str
    running: bool
    schedule: str
    next_run_at: datetime | None = None
    last_run: JobRunResult | None = None


class SchedulerStatusResponse(BaseModel):
    """Response for GET /api/scheduler/jobs."""

    jobs: list[JobStatus]
