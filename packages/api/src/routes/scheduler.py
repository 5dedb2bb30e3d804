# This project was developed with assistance from AI tools.
"""Scheduler status and operator controls (admin only)."""

import logging

from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status

from ..core.engine import ComplianceEngine, get_engine
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.scheduler import JobRunResult, SchedulerStatusResponse
from ..services.scheduler import UnknownJobError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/jobs", response_model=SchedulerStatusResponse)
async def list_jobs(engine: ComplianceEngine = Depends(get_engine)) -> SchedulerStatusResponse:
    return SchedulerStatusResponse(jobs=engine.scheduler.status())


@router.post("/jobs/{name}/run", response_model=JobRunResult)
async def run_job(
    name: str,
    user: CurrentUser,
    engine: ComplianceEngine = Depends(get_engine),
) -> JobRunResult:
    """Run one job immediately, regardless of whether it is started."""
    try:
        result = await engine.scheduler.run_manually(name)
    except UnknownJobError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job '{name}' not found",
        ) from None
    logger.info("Job '%s' run by %s: %s", name, user.user_id, result.status)
    return result


@router.post("/start", response_model=SchedulerStatusResponse)
async def start_jobs(
    user: CurrentUser,
    engine: ComplianceEngine = Depends(get_engine),
) -> SchedulerStatusResponse:
    engine.scheduler.start_all()
    logger.info("Scheduler started by %s", user.user_id)
    return SchedulerStatusResponse(jobs=engine.scheduler.status())


@router.post("/stop", response_model=SchedulerStatusResponse)
async def stop_jobs(
    user: CurrentUser,
    engine: ComplianceEngine = Depends(get_engine),
) -> SchedulerStatusResponse:
    engine.scheduler.stop_all()
    logger.info("Scheduler stopped by %s", user.user_id)
    return SchedulerStatusResponse(jobs=engine.scheduler.status())
