# This project was developed with assistance from AI tools.
"""Document requirement request/response schemas."""

from datetime import date, datetime

from db.enums import RequirementStatus
from pydantic import BaseModel, ConfigDict, Field


class RequirementCreate(BaseModel):
    """Body for POST /api/requirements (assign a document type to a person)."""

    user_id: str
    document_type_id: int
    required_date: date


class RequirementApprove(BaseModel):
    approved_on: date | None = Field(
        default=None,
        description="Approval date used to derive expiration. Defaults to today.",
    )


class RequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    document_type_id: int
    required_date: date
    status: RequirementStatus
    expiration_date: date | None = None
    next_renewal_date: date | None = None
    reminder_sent_count: int = 0
    last_reminder_sent: datetime | None = None
