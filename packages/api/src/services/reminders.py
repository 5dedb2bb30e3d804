# This project was developed with assistance from AI tools.
"""Reminder pipeline.

One run performs four passes over the requirement store: expiring,
expired, pending, and renewal. Each requirement is processed into an
``ItemResult``; exceptions are caught per item and per pass so one bad
row never blocks the rest of the batch. A failed item leaves
``reminder_sent_count`` untouched and is picked up again on the next run.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from db.enums import NotificationPriority, NotificationType, ReminderType

from ..schemas.notification import NotificationCreate
from ..schemas.reminder import ItemOutcome, ItemResult, PassReport, PipelineReport
from ..schemas.urgency import ExpirationTier, SubmissionTier, UrgencyAssessment
from .throttle import ReminderThrottle
from .urgency import RENEWAL_WINDOW_DAYS, ClassificationError, classify_requirement

logger = logging.getLogger(__name__)

PASS_EXPIRING = "expiring"
PASS_EXPIRED = "expired"
PASS_PENDING = "pending"
PASS_RENEWAL = "renewal"

_PENDING_TIERS = {
    SubmissionTier.OVERDUE: ReminderType.OVERDUE,
    SubmissionTier.URGENT: ReminderType.URGENT,
    SubmissionTier.DUE_SOON: ReminderType.DUE_SOON,
}

ItemHandler = Callable[..., Awaitable[ItemResult]]


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------


def _days_phrase(days: int) -> str:
    if days == 0:
        return "hoy"
    if days == 1:
        return "mañana"
    return f"en {days} días"


def expiring_notification(requirement, assessment: UrgencyAssessment) -> NotificationCreate:
    urgent = assessment.expiration == ExpirationTier.URGENT
    type_name = requirement.document_type.name
    days = assessment.days_until_expiration
    return NotificationCreate(
        title="Documento por vencer URGENTE" if urgent else "Documento próximo a vencer",
        message=(
            f'Tu documento "{type_name}" vence {_days_phrase(days)}. '
            "Es necesario que subas el documento actualizado."
        ),
        type=NotificationType.ERROR if urgent else NotificationType.WARNING,
        priority=NotificationPriority.URGENT if urgent else NotificationPriority.HIGH,
        data={
            "action": "document_expiring",
            "requirement_id": requirement.id,
            "reminder_type": (ReminderType.URGENT if urgent else ReminderType.WARNING).value,
            "document_type_name": type_name,
            "expiration_date": requirement.expiration_date.isoformat(),
            "days_until_expiration": days,
        },
    )


def expired_notification(requirement) -> NotificationCreate:
    type_name = requirement.document_type.name
    return NotificationCreate(
        title="Documento VENCIDO",
        message=(
            f'Tu documento "{type_name}" ha VENCIDO. '
            "Es urgente que subas una versión actualizada."
        ),
        type=NotificationType.ERROR,
        priority=NotificationPriority.URGENT,
        data={
            "action": "document_expired",
            "requirement_id": requirement.id,
            "reminder_type": ReminderType.EXPIRED.value,
            "document_type_name": type_name,
            "expiration_date": requirement.expiration_date.isoformat(),
        },
    )


def pending_notification(requirement, assessment: UrgencyAssessment) -> NotificationCreate:
    type_name = requirement.document_type.name
    tier = assessment.submission
    days = assessment.days_until_due

    if tier == SubmissionTier.OVERDUE:
        title = "Documento ATRASADO"
        message = (
            f'El documento "{type_name}" debía entregarse hace {abs(days)} días. '
            "Es urgente que lo subas."
        )
        kind, priority = NotificationType.ERROR, NotificationPriority.URGENT
    elif tier == SubmissionTier.URGENT:
        title = "Documento por entregar HOY"
        message = f'El documento "{type_name}" debe entregarse hoy. No olvides subirlo.'
        kind, priority = NotificationType.WARNING, NotificationPriority.HIGH
    else:
        title = "Recordatorio de documento"
        message = f'El documento "{type_name}" debe entregarse {_days_phrase(days)}.'
        kind, priority = NotificationType.INFO, NotificationPriority.MEDIUM

    return NotificationCreate(
        title=title,
        message=message,
        type=kind,
        priority=priority,
        data={
            "action": "document_pending",
            "requirement_id": requirement.id,
            "reminder_type": _PENDING_TIERS[tier].value,
            "document_type_name": type_name,
            "required_date": requirement.required_date.isoformat(),
            "days_until_due": days,
        },
    )


def renewal_notification(requirement, assessment: UrgencyAssessment) -> NotificationCreate:
    type_name = requirement.document_type.name
    return NotificationCreate(
        title="Renovación próxima",
        message=(
            f'Tu documento "{type_name}" necesita renovación '
            f"{_days_phrase(assessment.days_until_renewal)}. "
            "Prepara la documentación necesaria para evitar que venza."
        ),
        type=NotificationType.INFO,
        priority=NotificationPriority.MEDIUM,
        data={
            "action": "document_renewal_due",
            "requirement_id": requirement.id,
            "reminder_type": ReminderType.RENEWAL.value,
            "document_type_name": type_name,
            "next_renewal_date": requirement.next_renewal_date.isoformat(),
            "days_until_renewal": assessment.days_until_renewal,
        },
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ReminderPipeline:
    """Runs the four reminder passes against a store and a notification emitter."""

    def __init__(
        self,
        store,
        emitter,
        *,
        tz: ZoneInfo,
        throttle: ReminderThrottle | None = None,
        renewal_window_days: int = RENEWAL_WINDOW_DAYS,
    ):
        self._store = store
        self._emitter = emitter
        self._tz = tz
        self._throttle = throttle or ReminderThrottle(store, tz)
        self._renewal_window_days = renewal_window_days

    async def run(self, now: datetime | None = None) -> PipelineReport:
        """Run every pass once. ``now`` defaults to the current time in the org timezone."""
        now = now.astimezone(self._tz) if now is not None else datetime.now(self._tz)
        today = now.date()
        report = PipelineReport(started_at=now)

        passes = (
            (PASS_EXPIRING, self._expiring_pass),
            (PASS_EXPIRED, self._expired_pass),
            (PASS_PENDING, self._pending_pass),
            (PASS_RENEWAL, self._renewal_pass),
        )
        for name, run_pass in passes:
            pass_report = PassReport(name=name)
            try:
                await run_pass(pass_report, today, now)
            except Exception as exc:
                logger.exception("Reminder pass '%s' aborted", name)
                pass_report.aborted = True
                pass_report.errors.append(f"pass aborted: {exc}")
            report.passes[name] = pass_report
            report.errors.extend(f"{name}: {err}" for err in pass_report.errors)
            logger.info(
                "Reminder pass '%s': fetched=%d sent=%d throttled=%d flagged=%d failed=%d",
                name,
                pass_report.fetched,
                pass_report.sent,
                pass_report.throttled,
                pass_report.flagged,
                pass_report.failed,
            )

        report.finished_at = datetime.now(self._tz)
        logger.info(
            "Reminder pipeline finished: %d sent, %d errors", report.total_sent, len(report.errors)
        )
        return report

    # -- passes --------------------------------------------------------------

    async def _expiring_pass(self, pass_report: PassReport, today: date, now: datetime) -> None:
        rows = await self._store.fetch_expiring(today)
        pass_report.fetched = len(rows)
        for requirement in rows:
            pass_report.record(await self._guarded(self._remind_expiring, requirement, today, now))

    async def _expired_pass(self, pass_report: PassReport, today: date, now: datetime) -> None:
        rows = await self._store.fetch_expired(today)
        pass_report.fetched = len(rows)
        for requirement in rows:
            result = await self._guarded(self._remind_expired, requirement, today, now)
            # Status flips whether or not the reminder went out
            try:
                result.status_updated = await self._store.mark_expired(requirement.id, today)
            except Exception as exc:
                logger.exception("Could not mark requirement %s expired", requirement.id)
                if result.outcome != ItemOutcome.FAILED:
                    result.outcome = ItemOutcome.FAILED
                    result.error = f"status update failed: {exc}"
            pass_report.record(result)

    async def _pending_pass(self, pass_report: PassReport, today: date, now: datetime) -> None:
        rows = await self._store.fetch_pending_due(today)
        pass_report.fetched = len(rows)
        for requirement in rows:
            pass_report.record(await self._guarded(self._remind_pending, requirement, today, now))

    async def _renewal_pass(self, pass_report: PassReport, today: date, now: datetime) -> None:
        rows = await self._store.fetch_renewals_due(today, self._renewal_window_days)
        pass_report.fetched = len(rows)
        for requirement in rows:
            pass_report.record(await self._guarded(self._remind_renewal, requirement, today, now))

    # -- per-item handlers -----------------------------------------------------

    async def _guarded(
        self,
        handler: ItemHandler,
        requirement,
        today: date,
        now: datetime,
    ) -> ItemResult:
        """Run one item handler, converting any exception into an ItemResult."""
        try:
            return await handler(requirement, today, now)
        except ClassificationError as exc:
            logger.warning("Requirement %s flagged for review: %s", requirement.id, exc)
            return ItemResult(
                requirement_id=requirement.id,
                outcome=ItemOutcome.FLAGGED,
                error=str(exc),
            )
        except Exception as exc:
            logger.exception("Reminder for requirement %s failed", requirement.id)
            return ItemResult(
                requirement_id=requirement.id,
                outcome=ItemOutcome.FAILED,
                error=f"{type(exc).__name__}: {exc}",
            )

    def _classify(self, requirement, today: date) -> UrgencyAssessment:
        return classify_requirement(
            requirement,
            requirement.document_type,
            today,
            renewal_window_days=self._renewal_window_days,
        )

    async def _remind_expiring(self, requirement, today: date, now: datetime) -> ItemResult:
        assessment = self._classify(requirement, today)
        if assessment.expiration not in (ExpirationTier.WARNING, ExpirationTier.URGENT):
            return ItemResult(requirement_id=requirement.id, outcome=ItemOutcome.SKIPPED)

        reminder_type = (
            ReminderType.URGENT
            if assessment.expiration == ExpirationTier.URGENT
            else ReminderType.WARNING
        )
        return await self._send(
            requirement,
            reminder_type,
            assessment.days_until_expiration,
            expiring_notification(requirement, assessment),
            today,
            now,
        )

    async def _remind_expired(self, requirement, today: date, now: datetime) -> ItemResult:
        assessment = self._classify(requirement, today)
        if assessment.expiration != ExpirationTier.EXPIRED:
            return ItemResult(requirement_id=requirement.id, outcome=ItemOutcome.SKIPPED)

        return await self._send(
            requirement,
            ReminderType.EXPIRED,
            assessment.days_until_expiration,
            expired_notification(requirement),
            today,
            now,
        )

    async def _remind_pending(self, requirement, today: date, now: datetime) -> ItemResult:
        assessment = self._classify(requirement, today)
        reminder_type = _PENDING_TIERS.get(assessment.submission)
        if reminder_type is None:
            return ItemResult(requirement_id=requirement.id, outcome=ItemOutcome.SKIPPED)

        return await self._send(
            requirement,
            reminder_type,
            assessment.days_until_due,
            pending_notification(requirement, assessment),
            today,
            now,
        )

    async def _remind_renewal(self, requirement, today: date, now: datetime) -> ItemResult:
        assessment = self._classify(requirement, today)
        if not assessment.renewal_due:
            return ItemResult(requirement_id=requirement.id, outcome=ItemOutcome.SKIPPED)

        return await self._send(
            requirement,
            ReminderType.RENEWAL,
            assessment.days_until_renewal,
            renewal_notification(requirement, assessment),
            today,
            now,
        )

    async def _send(
        self,
        requirement,
        reminder_type: ReminderType,
        days_offset: int,
        payload: NotificationCreate,
        today: date,
        now: datetime,
    ) -> ItemResult:
        """Throttle-check, emit, log, then bump the requirement's reminder counter."""
        if not await self._throttle.allows(requirement.id, reminder_type, today):
            return ItemResult(
                requirement_id=requirement.id,
                outcome=ItemOutcome.THROTTLED,
                reminder_type=reminder_type,
            )

        notification = await self._emitter.create_notification(requirement.user_id, payload)
        await self._store.append_reminder_log(
            requirement_id=requirement.id,
            user_id=requirement.user_id,
            reminder_type=reminder_type,
            days_offset=days_offset,
            notification_id=notification.id,
            sent_at=now,
        )
        await self._store.record_reminder_sent(requirement.id, now)

        logger.debug(
            "Sent %s reminder for requirement %s to %s",
            reminder_type.value,
            requirement.id,
            requirement.user_id,
        )
        return ItemResult(
            requirement_id=requirement.id,
            outcome=ItemOutcome.SENT,
            reminder_type=reminder_type,
            notification_id=notification.id,
        )
