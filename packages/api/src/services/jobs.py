# This project was developed with assistance from AI tools.
"""Standard recurring jobs: reminders, maintenance, cleanup, weekly report.

Each handler re-derives everything from current store data, so overlapping
manual and scheduled runs are safe to repeat.
"""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from db.enums import NotificationPriority, NotificationType

from ..schemas.notification import NotificationCreate
from .reminders import ReminderPipeline
from .scheduler import JobSchedule, Scheduler

logger = logging.getLogger(__name__)

DOCUMENT_REMINDERS = "document_reminders"
DAILY_MAINTENANCE = "daily_maintenance"
NOTIFICATION_CLEANUP = "notification_cleanup"
WEEKLY_REPORTS = "weekly_reports"

MONDAY = 0
SUNDAY = 6


class ReminderRunError(RuntimeError):
    """A reminder run where at least one pass could not complete."""


async def run_daily_maintenance(store, *, now: datetime, retention_days: int) -> dict:
    """Expire lapsed requirements and purge old reminder log entries."""
    expired = await store.expire_lapsed(now.date())
    purged = await store.purge_reminder_logs(now - timedelta(days=retention_days))
    logger.info("Daily maintenance: %d requirements expired, %d reminder logs purged", expired, purged)
    return {"expired_requirements": expired, "purged_reminder_logs": purged}


async def run_notification_cleanup(store, *, now: datetime, retention_days: int) -> dict:
    deleted = await store.purge_read_notifications(now - timedelta(days=retention_days))
    logger.info("Notification cleanup: %d read notifications deleted", deleted)
    return {"deleted_notifications": deleted}


async def run_weekly_report(store, emitter, *, now: datetime, window_days: int) -> dict:
    """Compute trailing-window stats and send one summary to every administrator."""
    today = now.date()
    start = today - timedelta(days=window_days)
    stats = await store.compliance_stats(start, today, today)

    admin_ids = await store.list_admin_ids()
    if admin_ids:
        await emitter.create_bulk_notifications(
            admin_ids,
            NotificationCreate(
                title="Reporte semanal de documentos",
                message=(
                    f"Resumen de la semana: {stats.assigned_in_period} documentos asignados, "
                    f"{stats.approved_in_period} aprobados, {stats.overdue} atrasados, "
                    f"{stats.expired} vencidos. Cumplimiento: {stats.compliance_rate}%."
                ),
                type=NotificationType.INFO,
                priority=NotificationPriority.LOW,
                data={"action": "weekly_report", **stats.model_dump(mode="json")},
            ),
        )
    else:
        logger.warning("Weekly report computed but there are no active admins to receive it")

    return {"recipients": len(admin_ids), **stats.model_dump(mode="json")}


def register_standard_jobs(
    scheduler: Scheduler,
    *,
    store,
    emitter,
    pipeline: ReminderPipeline,
    settings,
) -> None:
    """Register the four recurring jobs on ``scheduler`` in the org timezone."""
    tz_name = settings.SCHEDULER_TIMEZONE
    tz = ZoneInfo(tz_name)

    async def document_reminders() -> dict:
        report = await pipeline.run()
        if report.aborted_passes:
            raise ReminderRunError(
                f"passes aborted: {', '.join(report.aborted_passes)}; errors: {'; '.join(report.errors)}"
            )
        return {
            "processed": report.processed_counts,
            "sent": report.total_sent,
            "errors": report.errors,
        }

    async def daily_maintenance() -> dict:
        return await run_daily_maintenance(
            store,
            now=datetime.now(tz),
            retention_days=settings.REMINDER_LOG_RETENTION_DAYS,
        )

    async def notification_cleanup() -> dict:
        return await run_notification_cleanup(
            store,
            now=datetime.now(tz),
            retention_days=settings.NOTIFICATION_RETENTION_DAYS,
        )

    async def weekly_reports() -> dict:
        return await run_weekly_report(
            store,
            emitter,
            now=datetime.now(tz),
            window_days=settings.WEEKLY_REPORT_WINDOW_DAYS,
        )

    scheduler.register(
        DOCUMENT_REMINDERS,
        JobSchedule.daily(9, timezone=tz_name),
        document_reminders,
        description="Reminder pipeline: expiring, expired, pending, renewal",
        notify_on_success=True,
    )
    scheduler.register(
        DAILY_MAINTENANCE,
        JobSchedule.daily(3, timezone=tz_name),
        daily_maintenance,
        description="Expire lapsed requirements and purge old reminder logs",
    )
    scheduler.register(
        NOTIFICATION_CLEANUP,
        JobSchedule.weekly(SUNDAY, 2, timezone=tz_name),
        notification_cleanup,
        description="Delete old read notifications",
        notify_on_success=True,
    )
    scheduler.register(
        WEEKLY_REPORTS,
        JobSchedule.weekly(MONDAY, 8, timezone=tz_name),
        weekly_reports,
        description="Weekly compliance summary for administrators",
    )
