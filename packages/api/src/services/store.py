# This project was developed with assistance from AI tools.
"""Requirement store.

Query and update primitives the reminder engine needs, over async
SQLAlchemy. Every method opens its own session from the injected factory
and commits on its own, so each call is atomic for the rows it touches but
nothing spans a whole pipeline pass. Every call is bounded by a timeout.
"""

import asyncio
import functools
import logging
from datetime import date, datetime, timedelta

from db import (
    DocumentRequirement,
    DocumentType,
    Notification,
    ReminderLog,
    SessionLocal,
    UserProfile,
)
from db.enums import ReminderType, RequirementStatus, UserRole
from sqlalchemy import delete, select, update
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.compliance import ComplianceStats
from .compliance import compute_compliance_stats

logger = logging.getLogger(__name__)

_EXPIRABLE = sorted(RequirementStatus.expirable(), key=lambda s: s.value)


class StoreTimeoutError(TimeoutError):
    """A store or notification call exceeded its time budget."""


def bounded(method):
    """Run an async method under ``self._timeout`` seconds."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            async with asyncio.timeout(self._timeout):
                return await method(self, *args, **kwargs)
        except TimeoutError as exc:
            raise StoreTimeoutError(
                f"{type(self).__name__}.{method.__name__} exceeded {self._timeout}s"
            ) from exc

    return wrapper


class RequirementStore:
    """Requirement, reminder log, and notification retention queries."""

    def __init__(self, session_factory=SessionLocal, *, timeout: float | None = None):
        self._session_factory = session_factory
        self._timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    # ------------------------------------------------------------------
    # Pipeline fetches
    # ------------------------------------------------------------------

    def _requirements_with_policy(self):
        return (
            select(DocumentRequirement)
            .join(DocumentType, DocumentRequirement.document_type_id == DocumentType.id)
            .options(selectinload(DocumentRequirement.document_type))
        )

    @bounded
    async def fetch_expiring(self, today: date) -> list[DocumentRequirement]:
        """Submitted/approved requirements inside their policy's reminder window."""
        stmt = self._requirements_with_policy().where(
            DocumentRequirement.status.in_(_EXPIRABLE),
            DocumentRequirement.expiration_date.isnot(None),
            DocumentRequirement.expiration_date >= today,
            (DocumentRequirement.expiration_date - today) <= DocumentType.reminder_before_days,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @bounded
    async def fetch_expired(self, today: date) -> list[DocumentRequirement]:
        """Submitted/approved requirements whose expiration date has passed."""
        stmt = self._requirements_with_policy().where(
            DocumentRequirement.status.in_(_EXPIRABLE),
            DocumentRequirement.expiration_date < today,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @bounded
    async def fetch_pending_due(self, today: date) -> list[DocumentRequirement]:
        """Pending requirements that are overdue or inside the reminder window."""
        stmt = self._requirements_with_policy().where(
            DocumentRequirement.status == RequirementStatus.PENDING,
            (DocumentRequirement.required_date - today) <= DocumentType.reminder_before_days,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @bounded
    async def fetch_renewals_due(self, today: date, window_days: int) -> list[DocumentRequirement]:
        """Approved requirements with next_renewal_date in [today, today + window]."""
        stmt = self._requirements_with_policy().where(
            DocumentRequirement.status == RequirementStatus.APPROVED,
            DocumentRequirement.next_renewal_date.isnot(None),
            DocumentRequirement.next_renewal_date >= today,
            DocumentRequirement.next_renewal_date <= today + timedelta(days=window_days),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Reminder history
    # ------------------------------------------------------------------

    @bounded
    async def latest_reminder(
        self,
        requirement_id: int,
        reminder_type: ReminderType,
    ) -> ReminderLog | None:
        stmt = (
            select(ReminderLog)
            .where(
                ReminderLog.requirement_id == requirement_id,
                ReminderLog.reminder_type == reminder_type,
            )
            .order_by(ReminderLog.sent_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    @bounded
    async def append_reminder_log(
        self,
        *,
        requirement_id: int,
        user_id: str,
        reminder_type: ReminderType,
        days_offset: int,
        notification_id: int | None,
        sent_at: datetime,
    ) -> ReminderLog:
        entry = ReminderLog(
            requirement_id=requirement_id,
            user_id=user_id,
            reminder_type=reminder_type,
            days_offset=days_offset,
            notification_id=notification_id,
            sent_at=sent_at,
        )
        async with self._session_factory() as session:
            session.add(entry)
            await session.commit()
        return entry

    @bounded
    async def record_reminder_sent(self, requirement_id: int, sent_at: datetime) -> None:
        """Bump reminder_sent_count with a store-side increment and stamp last_reminder_sent."""
        stmt = (
            update(DocumentRequirement)
            .where(DocumentRequirement.id == requirement_id)
            .values(
                reminder_sent_count=DocumentRequirement.reminder_sent_count + 1,
                last_reminder_sent=sent_at,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    @bounded
    async def purge_reminder_logs(self, older_than: datetime) -> int:
        stmt = delete(ReminderLog).where(ReminderLog.sent_at < older_than)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    # ------------------------------------------------------------------
    # Status maintenance
    # ------------------------------------------------------------------

    @bounded
    async def mark_expired(self, requirement_id: int, today: date) -> bool:
        """Flip one requirement to expired if it is submitted/approved and lapsed."""
        stmt = (
            update(DocumentRequirement)
            .where(
                DocumentRequirement.id == requirement_id,
                DocumentRequirement.status.in_(_EXPIRABLE),
                DocumentRequirement.expiration_date < today,
            )
            .values(status=RequirementStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return (result.rowcount or 0) > 0

    @bounded
    async def expire_lapsed(self, today: date) -> int:
        """Flip every submitted/approved requirement past its expiration date."""
        stmt = (
            update(DocumentRequirement)
            .where(
                DocumentRequirement.status.in_(_EXPIRABLE),
                DocumentRequirement.expiration_date < today,
            )
            .values(status=RequirementStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    # ------------------------------------------------------------------
    # Notifications and people
    # ------------------------------------------------------------------

    @bounded
    async def purge_read_notifications(self, older_than: datetime) -> int:
        stmt = delete(Notification).where(
            Notification.is_read.is_(True),
            Notification.created_at < older_than,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    @bounded
    async def list_admin_ids(self) -> list[str]:
        stmt = select(UserProfile.id).where(
            UserProfile.role == UserRole.ADMIN,
            UserProfile.is_active.is_(True),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @bounded
    async def compliance_stats(self, start: date, end: date, today: date) -> ComplianceStats:
        async with self._session_factory() as session:
            return await compute_compliance_stats(session, start, end, today=today)
