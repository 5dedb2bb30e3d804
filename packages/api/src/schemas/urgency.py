# This project was developed with assistance from AI tools.
"""Urgency tier schemas for document requirements."""

import enum

from pydantic import BaseModel


class ExpirationTier(str, enum.Enum):
    EXPIRED = "expired"
    URGENT = "urgent"
    WARNING = "warning"
    OK = "ok"


class SubmissionTier(str, enum.Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    DUE_SOON = "due_soon"
    NORMAL = "normal"


class UrgencyAssessment(BaseModel):
    """Classification of one requirement on all three urgency axes."""

    requirement_id: int
    expiration: ExpirationTier = ExpirationTier.OK
    submission: SubmissionTier = SubmissionTier.NORMAL
    renewal_due: bool = False
    days_until_expiration: int | None = None
    days_until_due: int | None = None
    days_until_renewal: int | None = None
