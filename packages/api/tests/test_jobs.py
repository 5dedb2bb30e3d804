# This project was developed with assistance from AI tools.
"""Tests for the standard recurring jobs."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

from db.enums import ReminderType, RequirementStatus

from src.core.config import Settings
from src.services.jobs import (
    DAILY_MAINTENANCE,
    DOCUMENT_REMINDERS,
    NOTIFICATION_CLEANUP,
    WEEKLY_REPORTS,
    register_standard_jobs,
    run_daily_maintenance,
    run_notification_cleanup,
    run_weekly_report,
)
from src.services.reminders import ReminderPipeline
from src.services.scheduler import Scheduler
from tests.factories import InMemoryStore, RecordingEmitter, make_requirement

GT = ZoneInfo("America/Guatemala")
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=GT)
TODAY = NOW.date()


class TestDailyMaintenance:
    async def test_expires_lapsed_requirement_without_reminders(self):
        """Approved requirement that expired yesterday is flipped even with no reminder history."""
        req = make_requirement(id=1, expiration_date=TODAY - timedelta(days=1))
        store = InMemoryStore([req])

        result = await run_daily_maintenance(store, now=NOW, retention_days=180)

        assert req.status == RequirementStatus.EXPIRED
        assert result["expired_requirements"] == 1
        assert store.logs == []

    async def test_leaves_current_and_pending_alone(self):
        reqs = [
            make_requirement(id=1, expiration_date=TODAY),
            make_requirement(
                id=2,
                status=RequirementStatus.PENDING,
                required_date=TODAY - timedelta(days=10),
                expiration_date=TODAY - timedelta(days=10),
            ),
        ]
        store = InMemoryStore(reqs)

        result = await run_daily_maintenance(store, now=NOW, retention_days=180)

        assert result["expired_requirements"] == 0
        assert reqs[0].status == RequirementStatus.APPROVED
        assert reqs[1].status == RequirementStatus.PENDING

    async def test_purges_old_reminder_logs(self):
        store = InMemoryStore()
        for age in (10, 179, 181, 400):
            await store.append_reminder_log(
                requirement_id=1,
                user_id="emp-1",
                reminder_type=ReminderType.WARNING,
                days_offset=5,
                notification_id=None,
                sent_at=NOW - timedelta(days=age),
            )

        result = await run_daily_maintenance(store, now=NOW, retention_days=180)

        assert result["purged_reminder_logs"] == 2
        assert len(store.logs) == 2

    async def test_running_twice_is_harmless(self):
        req = make_requirement(id=1, expiration_date=TODAY - timedelta(days=3))
        store = InMemoryStore([req])

        await run_daily_maintenance(store, now=NOW, retention_days=180)
        second = await run_daily_maintenance(store, now=NOW, retention_days=180)

        assert second["expired_requirements"] == 0
        assert req.status == RequirementStatus.EXPIRED


async def test_notification_cleanup_deletes_old_read_notifications():
    store = InMemoryStore()
    store.read_notifications = [
        SimpleNamespace(id=1, created_at=NOW - timedelta(days=45)),
        SimpleNamespace(id=2, created_at=NOW - timedelta(days=5)),
    ]

    result = await run_notification_cleanup(store, now=NOW, retention_days=30)

    assert result == {"deleted_notifications": 1}
    assert [n.id for n in store.read_notifications] == [2]


class TestWeeklyReport:
    async def test_one_notification_per_admin(self):
        store = InMemoryStore(admin_ids=["admin-1", "admin-2"])
        emitter = RecordingEmitter()

        result = await run_weekly_report(store, emitter, now=NOW, window_days=7)

        assert [n.user_id for n in emitter.sent] == ["admin-1", "admin-2"]
        payload = emitter.sent[0].payload
        assert "Cumplimiento: 50.0%" in payload.message
        assert payload.data["period_start"] == (TODAY - timedelta(days=7)).isoformat()
        assert result["recipients"] == 2

    async def test_no_admins(self):
        store = InMemoryStore(admin_ids=[])
        emitter = RecordingEmitter()

        result = await run_weekly_report(store, emitter, now=NOW, window_days=7)

        assert emitter.sent == []
        assert result["recipients"] == 0


class TestRegisterStandardJobs:
    def _register(self):
        backend = MagicMock()
        scheduler = Scheduler(RecordingEmitter(), timezone="America/Guatemala", backend=backend)
        pipeline = MagicMock()
        pipeline.run = AsyncMock(
            return_value=MagicMock(
                processed_counts={"expiring": 1}, total_sent=1, errors=[], aborted_passes=[]
            )
        )
        register_standard_jobs(
            scheduler,
            store=InMemoryStore(),
            emitter=RecordingEmitter(),
            pipeline=pipeline,
            settings=Settings(SCHEDULER_TIMEZONE="America/Guatemala"),
        )
        return scheduler, pipeline

    def test_four_jobs_with_cadence(self):
        scheduler, _ = self._register()
        schedules = {s.name: s.schedule for s in scheduler.status()}
        assert schedules == {
            DOCUMENT_REMINDERS: "daily 09:00 America/Guatemala",
            DAILY_MAINTENANCE: "daily 03:00 America/Guatemala",
            NOTIFICATION_CLEANUP: "sun 02:00 America/Guatemala",
            WEEKLY_REPORTS: "mon 08:00 America/Guatemala",
        }
        assert not any(s.running for s in scheduler.status())

    async def test_reminder_job_runs_pipeline(self):
        scheduler, pipeline = self._register()

        result = await scheduler.run_manually(DOCUMENT_REMINDERS)

        pipeline.run.assert_awaited_once()
        assert result.status == "success"
        assert result.result == {"processed": {"expiring": 1}, "sent": 1, "errors": []}


class TestReminderJobFailures:
    def _register(self, store):
        emitter = RecordingEmitter()
        scheduler = Scheduler(emitter, timezone="America/Guatemala", backend=MagicMock())
        register_standard_jobs(
            scheduler,
            store=store,
            emitter=emitter,
            pipeline=ReminderPipeline(store, emitter, tz=GT),
            settings=Settings(SCHEDULER_TIMEZONE="America/Guatemala"),
        )
        return scheduler, emitter

    async def test_aborted_passes_fail_the_job_and_alert_admins(self):
        store = InMemoryStore([make_requirement(id=1, expiration_date=TODAY + timedelta(days=20))])
        store.fail_fetch.update(
            {"fetch_expiring", "fetch_expired", "fetch_pending_due", "fetch_renewals_due"}
        )
        scheduler, emitter = self._register(store)

        result = await scheduler.run_manually(DOCUMENT_REMINDERS)

        assert result.status == "failed"
        assert result.error.startswith("ReminderRunError: passes aborted: expiring, expired")
        assert [n.title for n in emitter.admin_notices] == ["Error del sistema"]
        assert emitter.admin_notices[0].data["job_name"] == DOCUMENT_REMINDERS

    async def test_single_aborted_pass_still_fails(self):
        store = InMemoryStore()
        store.fail_fetch.add("fetch_renewals_due")
        scheduler, emitter = self._register(store)

        result = await scheduler.run_manually(DOCUMENT_REMINDERS)

        assert result.status == "failed"
        assert "renewal: pass aborted: fetch_renewals_due unavailable" in result.error
        assert [n.title for n in emitter.admin_notices] == ["Error del sistema"]

    async def test_clean_run_sends_completion_notice(self):
        scheduler, emitter = self._register(InMemoryStore())

        result = await scheduler.run_manually(DOCUMENT_REMINDERS)

        assert result.status == "success"
        assert [n.title for n in emitter.admin_notices] == ["Trabajo completado"]