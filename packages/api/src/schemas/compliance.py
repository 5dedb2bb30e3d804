# This project was developed with assistance from AI tools.
"""Compliance snapshot and report schemas."""

import enum
from datetime import date

from pydantic import BaseModel, Field


class OverallStatus(str, enum.Enum):
    CRITICAL = "critical"
    ATTENTION = "attention"
    NORMAL = "normal"
    COMPLETE = "complete"


class DocumentStatusCounts(BaseModel):
    total: int = 0
    active: int = 0
    expired: int = 0
    expiring_soon: int = 0
    pending: int = 0


class RequirementStatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    overdue: int = 0
    completed: int = 0


class ComplianceSnapshot(BaseModel):
    """Point-in-time rollup of one person's document health."""

    user_id: str
    as_of: date
    document_status: DocumentStatusCounts
    requirement_status: RequirementStatusCounts
    overall_status: OverallStatus


class DepartmentSummary(BaseModel):
    """People per overall status and summed document buckets for a department."""

    department: str
    as_of: date
    employees: int = 0
    employees_by_status: dict[OverallStatus, int] = Field(
        default_factory=lambda: {s: 0 for s in OverallStatus}
    )
    documents: DocumentStatusCounts = Field(default_factory=DocumentStatusCounts)
    snapshots: list[ComplianceSnapshot] = Field(default_factory=list)


class ComplianceStats(BaseModel):
    """Organization-wide statistics for a reporting window."""

    period_start: date
    period_end: date
    total_requirements: int = 0
    assigned_in_period: int = 0
    approved_in_period: int = 0
    overdue: int = 0
    expired: int = 0
    reminders_sent: int = 0
    compliance_rate: float = 0.0
