# This project was developed with assistance from AI tools.
"""Reminder pipeline report schemas."""

import enum
from datetime import datetime

from db.enums import ReminderType
from pydantic import BaseModel, Field


class ItemOutcome(str, enum.Enum):
    SENT = "sent"
    THROTTLED = "throttled"
    SKIPPED = "skipped"
    FLAGGED = "flagged"
    FAILED = "failed"


class ItemResult(BaseModel):
    """Outcome of processing one requirement inside a pass."""

    requirement_id: int
    outcome: ItemOutcome
    reminder_type: ReminderType | None = None
    notification_id: int | None = None
    status_updated: bool = False
    error: str | None = None


class PassReport(BaseModel):
    """Counts and per-item results for one pipeline pass."""

    name: str
    fetched: int = 0
    sent: int = 0
    throttled: int = 0
    skipped: int = 0
    flagged: int = 0
    failed: int = 0
    status_updates: int = 0
    aborted: bool = False
    items: list[ItemResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def record(self, item: ItemResult) -> None:
        self.items.append(item)
        if item.status_updated:
            self.status_updates += 1
        if item.outcome == ItemOutcome.SENT:
            self.sent += 1
        elif item.outcome == ItemOutcome.THROTTLED:
            self.throttled += 1
        elif item.outcome == ItemOutcome.SKIPPED:
            self.skipped += 1
        elif item.outcome == ItemOutcome.FLAGGED:
            self.flagged += 1
            self.errors.append(f"requirement {item.requirement_id}: {item.error}")
        else:
            self.failed += 1
            self.errors.append(f"requirement {item.requirement_id}: {item.error}")


class PipelineReport(BaseModel):
    """Result of one full reminder pipeline run."""

    started_at: datetime
    finished_at: datetime | None = None
    passes: dict[str, PassReport] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @property
    def processed_counts(self) -> dict[str, int]:
        return {name: p.fetched for name, p in self.passes.items()}

    @property
    def total_sent(self) -> int:
        return sum(p.sent for p in self.passes.values())

    @property
    def aborted_passes(self) -> list[str]:
        return [name for name, p in self.passes.items() if p.aborted]


class PipelineRunResponse(BaseModel):
    """Response for POST /api/reminders/run."""

    started_at: datetime
    finished_at: datetime | None = None
    processed_counts: dict[str, int]
    sent_counts: dict[str, int]
    errors: list[str]

    @classmethod
    def from_report(cls, report: PipelineReport) -> "PipelineRunResponse":
        return cls(
            started_at=report.started_at,
            finished_at=report.finished_at,
            processed_counts=report.processed_counts,
            sent_counts={name: p.sent for name, p in report.passes.items()},
            errors=report.errors,
        )
