# This project was developed with assistance from AI tools.
"""Manual reminder pipeline trigger."""

import logging

from db.enums import UserRole
from fastapi import APIRouter, Depends

from ..core.engine import ComplianceEngine, get_engine
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.reminder import PipelineRunResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/run",
    response_model=PipelineRunResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def run_reminders(
    user: CurrentUser,
    engine: ComplianceEngine = Depends(get_engine),
) -> PipelineRunResponse:
    """Run all four reminder passes now and return per-pass counts."""
    logger.info("Reminder pipeline triggered manually by %s", user.user_id)
    report = await engine.pipeline.run()
    return PipelineRunResponse.from_report(report)
