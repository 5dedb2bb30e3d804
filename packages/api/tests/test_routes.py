# This project was developed with assistance from AI tools.
"""Tests for the HTTP routes with the engine and database mocked out."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from db.enums import RequirementStatus, UserRole

from src.schemas.compliance import (
    ComplianceSnapshot,
    DepartmentSummary,
    DocumentStatusCounts,
    OverallStatus,
    RequirementStatusCounts,
)
from src.schemas.reminder import PassReport, PipelineReport
from src.schemas.scheduler import JobRunResult, JobStatus
from src.services.requirements import InvalidTransitionError, RequirementNotFoundError
from src.services.scheduler import UnknownJobError
from tests.factories import make_requirement

GT = ZoneInfo("America/Guatemala")


def _snapshot(user_id="emp-1", overall=OverallStatus.COMPLETE):
    return ComplianceSnapshot(
        user_id=user_id,
        as_of=date(2026, 3, 10),
        document_status=DocumentStatusCounts(),
        requirement_status=RequirementStatusCounts(),
        overall_status=overall,
    )


class TestHealth:
    def test_reports_api_and_database(self, client):
        with patch("db.database.db_service.health_check", new_callable=AsyncMock) as check:
            check.return_value = False
            resp = client.get("/health/")
        assert resp.status_code == 200
        items = {item["name"]: item for item in resp.json()}
        assert items["Database"]["status"] == "unhealthy"
        assert len(items) == 2


class TestReminders:
    def test_run_returns_counts(self, client, mock_engine):
        report = PipelineReport(started_at=datetime(2026, 3, 10, 9, 0, tzinfo=GT))
        report.passes["expiring"] = PassReport(name="expiring", fetched=3, sent=2)
        report.errors.append("expiring: requirement 7: boom")
        mock_engine.pipeline.run.return_value = report

        resp = client.post("/api/reminders/run")

        assert resp.status_code == 200
        body = resp.json()
        assert body["processed_counts"] == {"expiring": 3}
        assert body["sent_counts"] == {"expiring": 2}
        assert body["errors"] == ["expiring: requirement 7: boom"]

    def test_employee_cannot_run(self, client, as_user, mock_engine):
        as_user("emp-1", UserRole.EMPLOYEE)
        resp = client.post("/api/reminders/run")
        assert resp.status_code == 403
        assert resp.json()["title"] == "Forbidden"
        mock_engine.pipeline.run.assert_not_awaited()


class TestScheduler:
    def test_list_jobs(self, client, mock_engine):
        mock_engine.scheduler.status.return_value = [
            JobStatus(name="document_reminders", running=True, schedule="daily 09:00 America/Guatemala")
        ]
        resp = client.get("/api/scheduler/jobs")
        assert resp.status_code == 200
        assert resp.json()["jobs"][0] == {
            "name": "document_reminders",
            "running": True,
            "schedule": "daily 09:00 America/Guatemala",
            "next_run_at": None,
            "last_run": None,
        }

    def test_run_job(self, client, mock_engine):
        mock_engine.scheduler.run_manually.return_value = JobRunResult(
            job_name="daily_maintenance", status="success", duration_ms=12, result={"expired_requirements": 1}
        )
        resp = client.post("/api/scheduler/jobs/daily_maintenance/run")
        assert resp.status_code == 200
        assert resp.json()["result"] == {"expired_requirements": 1}
        mock_engine.scheduler.run_manually.assert_awaited_once_with("daily_maintenance")

    def test_unknown_job_is_404(self, client, mock_engine):
        mock_engine.scheduler.run_manually.side_effect = UnknownJobError("nope")
        resp = client.post("/api/scheduler/jobs/nope/run")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Job 'nope' not found"

    def test_start_and_stop(self, client, mock_engine):
        mock_engine.scheduler.status.return_value = []
        assert client.post("/api/scheduler/start").status_code == 200
        mock_engine.scheduler.start_all.assert_called_once()
        assert client.post("/api/scheduler/stop").status_code == 200
        mock_engine.scheduler.stop_all.assert_called_once()

    def test_editor_forbidden(self, client, as_user):
        as_user("ed-1", UserRole.EDITOR)
        assert client.get("/api/scheduler/jobs").status_code == 403


class TestCompliance:
    def test_me_uses_caller_id(self, client, as_user):
        as_user("emp-1", UserRole.EMPLOYEE)
        with patch(
            "src.routes.compliance.compute_compliance_snapshot", new_callable=AsyncMock
        ) as compute:
            compute.return_value = _snapshot("emp-1", OverallStatus.ATTENTION)
            resp = client.get("/api/compliance/me")
        assert resp.status_code == 200
        assert resp.json()["overall_status"] == "attention"
        assert compute.await_args.args[1] == "emp-1"

    def test_unknown_user_404(self, client):
        with patch(
            "src.routes.compliance.compute_compliance_snapshot", new_callable=AsyncMock
        ) as compute:
            compute.return_value = None
            resp = client.get("/api/compliance/users/ghost")
        assert resp.status_code == 404

    def test_employee_cannot_view_others(self, client, as_user):
        as_user("emp-1", UserRole.EMPLOYEE)
        assert client.get("/api/compliance/users/emp-2").status_code == 403

    def test_department_summary(self, client, as_user):
        as_user("ed-1", UserRole.EDITOR)
        summary = DepartmentSummary(department="Ventas", as_of=date(2026, 3, 10), employees=2)
        with patch("src.routes.compliance.summarize_department", new_callable=AsyncMock) as summarize:
            summarize.return_value = summary
            resp = client.get("/api/compliance/departments/Ventas")
        assert resp.status_code == 200
        assert resp.json()["employees"] == 2


class TestRequirements:
    def test_assign(self, client, mock_engine):
        req = make_requirement(id=11, status=RequirementStatus.PENDING, required_date=date(2026, 4, 1))
        with patch("src.routes.requirements.assign_requirement", new_callable=AsyncMock) as assign:
            assign.return_value = req
            resp = client.post(
                "/api/requirements",
                json={"user_id": "emp-1", "document_type_id": 1, "required_date": "2026-04-01"},
            )
        assert resp.status_code == 201
        assert resp.json()["status"] == "pending"
        assert assign.await_args.kwargs["created_by"] == "dev-user"
        assert assign.await_args.args[1] is mock_engine.emitter

    def test_assign_unknown_type_is_404(self, client):
        with patch("src.routes.requirements.assign_requirement", new_callable=AsyncMock) as assign:
            assign.side_effect = RequirementNotFoundError("Document type 9 not found")
            resp = client.post(
                "/api/requirements",
                json={"user_id": "emp-1", "document_type_id": 9, "required_date": "2026-04-01"},
            )
        assert resp.status_code == 404

    def test_approve_with_date(self, client):
        req = make_requirement(id=11, expiration_date=date(2027, 3, 10))
        with patch("src.routes.requirements.approve_requirement", new_callable=AsyncMock) as approve:
            approve.return_value = req
            resp = client.post("/api/requirements/11/approve", json={"approved_on": "2026-03-10"})
        assert resp.status_code == 200
        assert resp.json()["expiration_date"] == "2027-03-10"
        assert approve.await_args.kwargs["approved_on"] == date(2026, 3, 10)

    @pytest.mark.parametrize(
        "error,status_code",
        [(InvalidTransitionError("bad"), 409), (RequirementNotFoundError("gone"), 404)],
    )
    def test_reject_errors(self, client, error, status_code):
        with patch("src.routes.requirements.reject_requirement", new_callable=AsyncMock) as reject:
            reject.side_effect = error
            resp = client.post("/api/requirements/11/reject")
        assert resp.status_code == status_code
        assert resp.json()["status"] == status_code

    def test_employee_cannot_assign(self, client, as_user):
        as_user("emp-1", UserRole.EMPLOYEE)
        resp = client.post(
            "/api/requirements",
            json={"user_id": "emp-1", "document_type_id": 1, "required_date": "2026-04-01"},
        )
        assert resp.status_code == 403


def test_engine_dependency_reads_app_state():
    from src.core.engine import get_engine

    request = MagicMock()
    assert get_engine(request) is request.app.state.engine
