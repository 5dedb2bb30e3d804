# This project was developed with assistance from AI tools.
"""Requirement assignment and review actions."""

from datetime import datetime

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.engine import ComplianceEngine, get_engine
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.requirement import RequirementApprove, RequirementCreate, RequirementResponse
from ..services.requirements import (
    InvalidTransitionError,
    RequirementNotFoundError,
    approve_requirement,
    assign_requirement,
    reject_requirement,
)

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR))])


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RequirementNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("", response_model=RequirementResponse, status_code=status.HTTP_201_CREATED)
async def create_requirement(
    body: RequirementCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    engine: ComplianceEngine = Depends(get_engine),
) -> RequirementResponse:
    """Assign a document type to a person with a submission deadline."""
    try:
        requirement = await assign_requirement(
            session,
            engine.emitter,
            user_id=body.user_id,
            document_type_id=body.document_type_id,
            required_date=body.required_date,
            created_by=user.user_id,
        )
    except RequirementNotFoundError as exc:
        raise _http_error(exc) from exc
    return RequirementResponse.model_validate(requirement)


@router.post("/{requirement_id}/approve", response_model=RequirementResponse)
async def approve(
    requirement_id: int,
    body: RequirementApprove | None = None,
    session: AsyncSession = Depends(get_db),
    engine: ComplianceEngine = Depends(get_engine),
) -> RequirementResponse:
    now = datetime.now(engine.tz)
    approved_on = body.approved_on if body and body.approved_on else now.date()
    try:
        requirement = await approve_requirement(
            session, requirement_id, approved_on=approved_on, now=now
        )
    except (RequirementNotFoundError, InvalidTransitionError) as exc:
        raise _http_error(exc) from exc
    return RequirementResponse.model_validate(requirement)


@router.post("/{requirement_id}/reject", response_model=RequirementResponse)
async def reject(
    requirement_id: int,
    session: AsyncSession = Depends(get_db),
) -> RequirementResponse:
    try:
        requirement = await reject_requirement(session, requirement_id)
    except (RequirementNotFoundError, InvalidTransitionError) as exc:
        raise _http_error(exc) from exc
    return RequirementResponse.model_validate(requirement)
