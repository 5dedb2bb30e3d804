# This project was developed with assistance from AI tools.
"""Urgency classification for document requirements.

Pure functions mapping a requirement, its document type policy, and the
current date to urgency tiers on three independent axes:

- expiration (submitted/approved requirements with an expiration date),
- submission (pending requirements against their required date),
- renewal (approved requirements with an upcoming renewal date).

Nothing here reads the clock; ``today`` is always supplied by the caller.
"""

import logging
from datetime import date, datetime

from db.enums import RequirementStatus

from ..schemas.urgency import ExpirationTier, SubmissionTier, UrgencyAssessment

logger = logging.getLogger(__name__)

# Renewal reminders start this many days before next_renewal_date
RENEWAL_WINDOW_DAYS = 7


class ClassificationError(ValueError):
    """Requirement or policy data cannot be classified (missing policy, bad dates)."""


def _as_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ClassificationError(f"{field_name} is not a date: {value!r}")


def _validate_policy(policy) -> tuple[int, int]:
    """Return (reminder_before_days, urgent_reminder_days) or raise."""
    if policy is None:
        raise ClassificationError("no document type policy")

    before = policy.reminder_before_days
    urgent = policy.urgent_reminder_days
    if not isinstance(before, int) or not isinstance(urgent, int):
        raise ClassificationError(
            f"policy {getattr(policy, 'id', '?')} has non-integer reminder windows"
        )
    if urgent < 0 or urgent >= before:
        raise ClassificationError(
            f"policy {getattr(policy, 'id', '?')} urgent_reminder_days={urgent} "
            f"must be below reminder_before_days={before}"
        )
    return before, urgent


def _status_of(requirement) -> RequirementStatus:
    try:
        return RequirementStatus(requirement.status)
    except ValueError as exc:
        raise ClassificationError(f"unknown requirement status {requirement.status!r}") from exc


def classify_expiration(
    expiration_date: date,
    policy,
    today: date,
) -> tuple[ExpirationTier, int]:
    """Tier an expiration date. Returns (tier, days_until_expiration)."""
    before, urgent = _validate_policy(policy)
    days = (_as_date(expiration_date, "expiration_date") - today).days

    if days < 0:
        return ExpirationTier.EXPIRED, days
    if days <= urgent:
        return ExpirationTier.URGENT, days
    if days <= before:
        return ExpirationTier.WARNING, days
    return ExpirationTier.OK, days


def classify_submission(
    required_date: date,
    policy,
    today: date,
) -> tuple[SubmissionTier, int]:
    """Tier a submission deadline. Returns (tier, days_until_due)."""
    before, _ = _validate_policy(policy)
    days = (_as_date(required_date, "required_date") - today).days

    if days < 0:
        return SubmissionTier.OVERDUE, days
    if days == 0:
        return SubmissionTier.URGENT, days
    if days <= before:
        return SubmissionTier.DUE_SOON, days
    return SubmissionTier.NORMAL, days


def renewal_days_remaining(
    next_renewal_date: date,
    today: date,
    window_days: int = RENEWAL_WINDOW_DAYS,
) -> int | None:
    """Days until renewal when inside the reminder window, else None."""
    days = (_as_date(next_renewal_date, "next_renewal_date") - today).days
    if 0 <= days <= window_days:
        return days
    return None


def classify_requirement(
    requirement,
    policy,
    today: date,
    *,
    renewal_window_days: int = RENEWAL_WINDOW_DAYS,
) -> UrgencyAssessment:
    """Classify one requirement on every axis that applies to its status.

    Axes that do not apply keep their neutral tier (``ok`` / ``normal``), so
    the result always carries exactly one expiration tier and one submission
    tier. Approved requirements are evaluated for expiration and renewal
    independently and may trigger both.

    Raises:
        ClassificationError: policy missing or malformed, or a date field
            holds something other than a date.
    """
    _validate_policy(policy)
    status = _status_of(requirement)
    assessment = UrgencyAssessment(requirement_id=requirement.id)

    if status in RequirementStatus.expirable() and requirement.expiration_date is not None:
        tier, days = classify_expiration(requirement.expiration_date, policy, today)
        assessment.expiration = tier
        assessment.days_until_expiration = days

    if status == RequirementStatus.PENDING:
        if requirement.required_date is None:
            raise ClassificationError("pending requirement has no required_date")
        tier, days = classify_submission(requirement.required_date, policy, today)
        assessment.submission = tier
        assessment.days_until_due = days

    if status == RequirementStatus.APPROVED and requirement.next_renewal_date is not None:
        days = renewal_days_remaining(requirement.next_renewal_date, today, renewal_window_days)
        if days is not None:
            assessment.renewal_due = True
            assessment.days_until_renewal = days

    return assessment
