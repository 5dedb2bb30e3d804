# This project was developed with assistance from AI tools.
"""Tests for requirement lifecycle actions."""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from db.enums import NotificationPriority, NotificationType, RequirementStatus

from src.services.requirements import (
    InvalidTransitionError,
    RequirementNotFoundError,
    approve_requirement,
    assign_requirement,
    compute_expiration_date,
    compute_next_renewal_date,
    reject_requirement,
)
from tests.factories import make_policy, make_requirement

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=UTC)


def _session_returning(requirement):
    session = AsyncMock()
    session.add = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = requirement
    session.execute.return_value = result
    return session


class TestDateDerivation:
    def test_expiration_adds_calendar_months(self):
        policy = make_policy(validity_period_months=1)
        assert compute_expiration_date(date(2026, 1, 31), policy) == date(2026, 2, 28)

    def test_no_validity_means_no_expiration(self):
        assert compute_expiration_date(date(2026, 1, 31), make_policy(validity_period_months=None)) is None

    @pytest.mark.parametrize(
        "unit,period,expected",
        [
            ("days", 10, date(2026, 3, 20)),
            ("months", 6, date(2026, 9, 10)),
            ("years", 2, date(2028, 3, 10)),
        ],
    )
    def test_renewal_units(self, unit, period, expected):
        policy = make_policy(has_renewal=True, renewal_period=period, renewal_unit=unit)
        assert compute_next_renewal_date(date(2026, 3, 10), policy) == expected

    def test_no_renewal(self):
        assert compute_next_renewal_date(date(2026, 3, 10), make_policy(has_renewal=False)) is None


class TestApprove:
    async def test_from_submitted_sets_dates(self):
        policy = make_policy(validity_period_months=12, has_renewal=True, renewal_period=11)
        req = make_requirement(id=5, status=RequirementStatus.SUBMITTED, policy=policy)
        session = _session_returning(req)

        result = await approve_requirement(session, 5, approved_on=date(2026, 3, 10), now=NOW)

        assert result.status == RequirementStatus.APPROVED
        assert result.approved_at == NOW
        assert result.expiration_date == date(2027, 3, 10)
        assert result.next_renewal_date == date(2027, 2, 10)
        session.commit.assert_awaited_once()

    async def test_direct_approval_from_pending(self):
        req = make_requirement(id=5, status=RequirementStatus.PENDING)
        session = _session_returning(req)

        result = await approve_requirement(session, 5, approved_on=date(2026, 3, 10), now=NOW)

        assert result.status == RequirementStatus.APPROVED

    async def test_cannot_approve_expired(self):
        req = make_requirement(id=5, status=RequirementStatus.EXPIRED)
        session = _session_returning(req)

        with pytest.raises(InvalidTransitionError):
            await approve_requirement(session, 5, now=NOW)
        session.commit.assert_not_awaited()

    async def test_missing(self):
        session = _session_returning(None)
        with pytest.raises(RequirementNotFoundError):
            await approve_requirement(session, 404, now=NOW)


class TestReject:
    async def test_from_pending(self):
        req = make_requirement(id=5, status=RequirementStatus.PENDING)
        session = _session_returning(req)

        result = await reject_requirement(session, 5)

        assert result.status == RequirementStatus.REJECTED

    async def test_cannot_reject_approved(self):
        req = make_requirement(id=5, status=RequirementStatus.APPROVED)
        session = _session_returning(req)

        with pytest.raises(InvalidTransitionError, match="approved"):
            await reject_requirement(session, 5)


class TestAssign:
    def _session(self, doc_type, user):
        session = AsyncMock()
        session.add = MagicMock()
        session.get.side_effect = [doc_type, user]
        return session

    async def test_creates_pending_and_notifies(self):
        session = self._session(make_policy(name="Antecedentes penales"), MagicMock())
        emitter = AsyncMock()

        req = await assign_requirement(
            session,
            emitter,
            user_id="emp-1",
            document_type_id=1,
            required_date=date(2026, 4, 1),
            created_by="admin-1",
        )

        assert req.status == RequirementStatus.PENDING
        assert req.reminder_sent_count == 0
        assert req.created_by == "admin-1"
        session.add.assert_called_once_with(req)
        session.commit.assert_awaited_once()

        user_id, payload = emitter.create_notification.await_args.args
        assert user_id == "emp-1"
        assert payload.title == "Nuevo documento requerido"
        assert payload.type == NotificationType.DOCUMENT
        assert payload.priority == NotificationPriority.MEDIUM
        assert "Antecedentes penales" in payload.message
        assert "2026-04-01" in payload.message

    async def test_unknown_document_type(self):
        session = self._session(None, MagicMock())
        with pytest.raises(RequirementNotFoundError, match="Document type"):
            await assign_requirement(
                session, AsyncMock(), user_id="emp-1", document_type_id=99, required_date=date(2026, 4, 1)
            )
        session.add.assert_not_called()

    async def test_unknown_user(self):
        session = self._session(make_policy(), None)
        with pytest.raises(RequirementNotFoundError, match="User"):
            await assign_requirement(
                session, AsyncMock(), user_id="ghost", document_type_id=1, required_date=date(2026, 4, 1)
            )

    async def test_notification_failure_keeps_assignment(self):
        session = self._session(make_policy(), MagicMock())
        emitter = AsyncMock()
        emitter.create_notification.side_effect = ConnectionError("down")

        req = await assign_requirement(
            session, emitter, user_id="emp-1", document_type_id=1, required_date=date(2026, 4, 1)
        )

        assert req.status == RequirementStatus.PENDING
        session.commit.assert_awaited_once()
