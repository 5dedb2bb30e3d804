# This project was developed with assistance from AI tools.
"""Compliance aggregation.

Rolls a person's requirements and submitted documents up into bucket counts
and a single overall status. The counting and rollup functions are pure;
the async wrappers load rows and delegate to them.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta

from db import Document, DocumentRequirement, ReminderLog, UserProfile
from db.enums import DocumentStatus, RequirementStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.compliance import (
    ComplianceSnapshot,
    ComplianceStats,
    DepartmentSummary,
    DocumentStatusCounts,
    OverallStatus,
    RequirementStatusCounts,
)

logger = logging.getLogger(__name__)


def count_document_status(
    documents,
    today: date,
    expiring_soon_days: int = 30,
) -> DocumentStatusCounts:
    """Bucket documents by status; active documents already past expiry count as expired."""
    counts = DocumentStatusCounts(total=len(documents))
    horizon = today + timedelta(days=expiring_soon_days)

    for doc in documents:
        status = DocumentStatus(doc.status)
        if status == DocumentStatus.EXPIRED:
            counts.expired += 1
        elif status == DocumentStatus.PENDING:
            counts.pending += 1
        elif status == DocumentStatus.ACTIVE:
            expires = doc.expiration_date
            if expires is not None and expires < today:
                counts.expired += 1
            elif expires is not None and expires <= horizon:
                counts.expiring_soon += 1
            else:
                counts.active += 1
    return counts


def count_requirement_status(requirements, today: date) -> RequirementStatusCounts:
    """Pending, overdue (pending past required_date) and completed (approved) counts."""
    counts = RequirementStatusCounts(total=len(requirements))
    for req in requirements:
        status = RequirementStatus(req.status)
        if status == RequirementStatus.PENDING:
            counts.pending += 1
            if req.required_date is not None and req.required_date < today:
                counts.overdue += 1
        elif status == RequirementStatus.APPROVED:
            counts.completed += 1
    return counts


def rollup_overall_status(
    documents: DocumentStatusCounts,
    requirements: RequirementStatusCounts,
) -> OverallStatus:
    """First matching rule wins: critical, attention, normal, complete."""
    if documents.expired > 0 or requirements.overdue > 0:
        return OverallStatus.CRITICAL
    if documents.expiring_soon > 0 or requirements.pending > 0:
        return OverallStatus.ATTENTION
    if documents.pending > 0:
        return OverallStatus.NORMAL
    return OverallStatus.COMPLETE


def build_snapshot(
    user_id: str,
    requirements,
    documents,
    today: date,
    expiring_soon_days: int = 30,
) -> ComplianceSnapshot:
    doc_counts = count_document_status(documents, today, expiring_soon_days)
    req_counts = count_requirement_status(requirements, today)
    return ComplianceSnapshot(
        user_id=user_id,
        as_of=today,
        document_status=doc_counts,
        requirement_status=req_counts,
        overall_status=rollup_overall_status(doc_counts, req_counts),
    )


async def _load_for_users(session: AsyncSession, user_ids: list[str]):
    """Requirements and their linked documents, grouped by user id."""
    req_result = await session.execute(
        select(DocumentRequirement).where(DocumentRequirement.user_id.in_(user_ids))
    )
    requirements = req_result.scalars().all()

    doc_ids = {r.document_id for r in requirements if r.document_id is not None}
    documents = []
    if doc_ids:
        doc_result = await session.execute(select(Document).where(Document.id.in_(doc_ids)))
        documents = doc_result.scalars().all()

    reqs_by_user = defaultdict(list)
    for req in requirements:
        reqs_by_user[req.user_id].append(req)
    docs_by_user = defaultdict(list)
    for doc in documents:
        docs_by_user[doc.user_id].append(doc)
    return reqs_by_user, docs_by_user


async def compute_compliance_snapshot(
    session: AsyncSession,
    user_id: str,
    *,
    today: date,
) -> ComplianceSnapshot | None:
    """Snapshot for one person, or None when the profile does not exist."""
    profile = await session.get(UserProfile, user_id)
    if profile is None:
        return None

    reqs_by_user, docs_by_user = await _load_for_users(session, [user_id])
    return build_snapshot(
        user_id,
        reqs_by_user[user_id],
        docs_by_user[user_id],
        today,
        settings.EXPIRING_SOON_DAYS,
    )


async def summarize_department(
    session: AsyncSession,
    department: str,
    *,
    today: date,
) -> DepartmentSummary:
    """Snapshot every active person in a department and tally overall statuses."""
    result = await session.execute(
        select(UserProfile.id)
        .where(UserProfile.department == department, UserProfile.is_active.is_(True))
        .order_by(UserProfile.id)
    )
    user_ids = list(result.scalars().all())
    summary = DepartmentSummary(department=department, as_of=today)
    if not user_ids:
        return summary

    reqs_by_user, docs_by_user = await _load_for_users(session, user_ids)
    for uid in user_ids:
        snap = build_snapshot(
            uid, reqs_by_user[uid], docs_by_user[uid], today, settings.EXPIRING_SOON_DAYS
        )
        summary.snapshots.append(snap)
        summary.employees_by_status[snap.overall_status] += 1
        for field in ("total", "active", "expired", "expiring_soon", "pending"):
            setattr(
                summary.documents,
                field,
                getattr(summary.documents, field) + getattr(snap.document_status, field),
            )
    summary.employees = len(user_ids)
    return summary


def compliance_rate(approved: int, considered: int) -> float:
    """Approved share of non-rejected requirements, as a percentage."""
    if considered == 0:
        return 0.0
    return round(approved * 100 / considered, 1)


async def compute_compliance_stats(
    session: AsyncSession,
    start: date,
    end: date,
    *,
    today: date,
) -> ComplianceStats:
    """Organization-wide counts for the window [start, end] plus current totals."""
    req = DocumentRequirement
    not_rejected = req.status != RequirementStatus.REJECTED
    created_on = func.date(req.created_at)
    approved_on = func.date(req.approved_at)

    row = (
        await session.execute(
            select(
                func.count(req.id).filter(not_rejected),
                func.count(req.id).filter(req.status == RequirementStatus.APPROVED),
                func.count(req.id).filter(created_on.between(start, end)),
                func.count(req.id).filter(approved_on.between(start, end)),
                func.count(req.id).filter(
                    req.status == RequirementStatus.PENDING, req.required_date < today
                ),
                func.count(req.id).filter(req.status == RequirementStatus.EXPIRED),
            )
        )
    ).one()
    considered, approved, assigned, approved_in_period, overdue, expired = row

    reminders_sent = (
        await session.execute(
            select(func.count(ReminderLog.id)).where(
                func.date(ReminderLog.sent_at).between(start, end)
            )
        )
    ).scalar_one()

    return ComplianceStats(
        period_start=start,
        period_end=end,
        total_requirements=considered,
        assigned_in_period=assigned,
        approved_in_period=approved_in_period,
        overdue=overdue,
        expired=expired,
        reminders_sent=reminders_sent,
        compliance_rate=compliance_rate(approved, considered),
    )
