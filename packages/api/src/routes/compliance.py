# This project was developed with assistance from AI tools.
"""Compliance snapshot endpoints."""

from datetime import datetime

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.engine import ComplianceEngine, get_engine
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.compliance import ComplianceSnapshot, DepartmentSummary
from ..services.compliance import compute_compliance_snapshot, summarize_department

router = APIRouter()


async def _snapshot_or_404(session: AsyncSession, user_id: str, engine: ComplianceEngine):
    snapshot = await compute_compliance_snapshot(
        session, user_id, today=datetime.now(engine.tz).date()
    )
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return snapshot


@router.get("/me", response_model=ComplianceSnapshot)
async def my_compliance(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    engine: ComplianceEngine = Depends(get_engine),
) -> ComplianceSnapshot:
    return await _snapshot_or_404(session, user.user_id, engine)


@router.get(
    "/users/{user_id}",
    response_model=ComplianceSnapshot,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR))],
)
async def user_compliance(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    engine: ComplianceEngine = Depends(get_engine),
) -> ComplianceSnapshot:
    return await _snapshot_or_404(session, user_id, engine)


@router.get(
    "/departments/{department}",
    response_model=DepartmentSummary,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR))],
)
async def department_compliance(
    department: str,
    session: AsyncSession = Depends(get_db),
    engine: ComplianceEngine = Depends(get_engine),
) -> DepartmentSummary:
    """Overall-status counts and document totals for active people in a department."""
    return await summarize_department(session, department, today=datetime.now(engine.tz).date())
