# This project was developed with assistance from AI tools.
"""Requirement lifecycle: assign, approve, reject.

Approval derives expiration and next renewal dates from the document type
policy using calendar arithmetic, so "12 months after Jan 31" lands on the
last day of the target month instead of drifting.
"""

import logging
from datetime import UTC, date, datetime

from db import DocumentRequirement, DocumentType, UserProfile
from db.enums import NotificationPriority, NotificationType, RenewalUnit, RequirementStatus
from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.notification import NotificationCreate

logger = logging.getLogger(__name__)


class RequirementError(Exception):
    """Lifecycle action rejected."""


class RequirementNotFoundError(RequirementError):
    """Requirement, document type, or person does not exist."""


class InvalidTransitionError(RequirementError):
    """Requested status change is not allowed from the current status."""


def compute_expiration_date(approved_on: date, policy) -> date | None:
    """Approval date plus the policy's validity period, or None when unbounded."""
    months = policy.validity_period_months
    if not months:
        return None
    return approved_on + relativedelta(months=months)


def compute_next_renewal_date(approved_on: date, policy) -> date | None:
    if not policy.has_renewal or not policy.renewal_period:
        return None
    unit = RenewalUnit(policy.renewal_unit)
    if unit == RenewalUnit.DAYS:
        delta = relativedelta(days=policy.renewal_period)
    elif unit == RenewalUnit.YEARS:
        delta = relativedelta(years=policy.renewal_period)
    else:
        delta = relativedelta(months=policy.renewal_period)
    return approved_on + delta


def _check_transition(requirement: DocumentRequirement, target: RequirementStatus) -> None:
    current = RequirementStatus(requirement.status)
    if target not in RequirementStatus.valid_transitions()[current]:
        raise InvalidTransitionError(
            f"Requirement {requirement.id} cannot move from '{current.value}' to '{target.value}'"
        )


async def _load_requirement(session: AsyncSession, requirement_id: int) -> DocumentRequirement:
    result = await session.execute(
        select(DocumentRequirement)
        .where(DocumentRequirement.id == requirement_id)
        .options(selectinload(DocumentRequirement.document_type))
    )
    requirement = result.scalar_one_or_none()
    if requirement is None:
        raise RequirementNotFoundError(f"Requirement {requirement_id} not found")
    return requirement


async def assign_requirement(
    session: AsyncSession,
    emitter,
    *,
    user_id: str,
    document_type_id: int,
    required_date: date,
    created_by: str | None = None,
) -> DocumentRequirement:
    """Create a pending requirement and tell the person about it.

    The notification is best-effort: a failure is logged and the committed
    requirement is still returned.
    """
    doc_type = await session.get(DocumentType, document_type_id)
    if doc_type is None:
        raise RequirementNotFoundError(f"Document type {document_type_id} not found")
    user = await session.get(UserProfile, user_id)
    if user is None:
        raise RequirementNotFoundError(f"User {user_id} not found")

    requirement = DocumentRequirement(
        user_id=user_id,
        document_type_id=document_type_id,
        required_date=required_date,
        status=RequirementStatus.PENDING,
        reminder_sent_count=0,
        created_by=created_by,
    )
    session.add(requirement)
    await session.commit()
    await session.refresh(requirement)
    logger.info(
        "Assigned '%s' to %s (requirement %s, due %s)",
        doc_type.name,
        user_id,
        requirement.id,
        required_date,
    )

    try:
        await emitter.create_notification(
            user_id,
            NotificationCreate(
                title="Nuevo documento requerido",
                message=(
                    f'Se te ha asignado el documento "{doc_type.name}". '
                    f"Fecha límite: {required_date.isoformat()}"
                ),
                type=NotificationType.DOCUMENT,
                priority=NotificationPriority.MEDIUM,
                data={
                    "action": "document_assigned",
                    "requirement_id": requirement.id,
                    "document_type_name": doc_type.name,
                    "required_date": required_date.isoformat(),
                },
            ),
        )
    except Exception:
        logger.exception("Assignment notification for requirement %s failed", requirement.id)

    return requirement


async def approve_requirement(
    session: AsyncSession,
    requirement_id: int,
    *,
    approved_on: date | None = None,
    now: datetime | None = None,
) -> DocumentRequirement:
    """Approve and derive expiration_date / next_renewal_date from the policy."""
    now = now or datetime.now(UTC)
    approved_on = approved_on or now.date()
    requirement = await _load_requirement(session, requirement_id)
    _check_transition(requirement, RequirementStatus.APPROVED)

    policy = requirement.document_type
    requirement.status = RequirementStatus.APPROVED
    requirement.approved_at = now
    requirement.expiration_date = compute_expiration_date(approved_on, policy)
    requirement.next_renewal_date = compute_next_renewal_date(approved_on, policy)
    await session.commit()
    await session.refresh(requirement)

    logger.info(
        "Approved requirement %s (expires %s, renewal %s)",
        requirement.id,
        requirement.expiration_date,
        requirement.next_renewal_date,
    )
    return requirement


async def reject_requirement(session: AsyncSession, requirement_id: int) -> DocumentRequirement:
    requirement = await _load_requirement(session, requirement_id)
    _check_transition(requirement, RequirementStatus.REJECTED)
    requirement.status = RequirementStatus.REJECTED
    await session.commit()
    await session.refresh(requirement)
    logger.info("Rejected requirement %s", requirement.id)
    return requirement
