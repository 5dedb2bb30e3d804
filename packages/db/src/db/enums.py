# This project was developed with assistance from AI tools.
"""
Domain enums for personnel document compliance.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    EMPLOYEE = "employee"


class RequirementStatus(str, enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @classmethod
    def expirable(cls) -> frozenset["RequirementStatus"]:
        """Statuses whose expiration_date is meaningful."""
        return frozenset({cls.SUBMITTED, cls.APPROVED})

    @classmethod
    def valid_transitions(cls) -> dict["RequirementStatus", frozenset["RequirementStatus"]]:
        """Allowed status transitions in the requirement lifecycle."""
        return {
            cls.PENDING: frozenset({cls.SUBMITTED, cls.APPROVED, cls.REJECTED}),
            cls.SUBMITTED: frozenset({cls.APPROVED, cls.REJECTED, cls.EXPIRED}),
            cls.APPROVED: frozenset({cls.EXPIRED}),
            cls.REJECTED: frozenset({cls.PENDING}),
            cls.EXPIRED: frozenset({cls.PENDING}),
        }


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    REJECTED = "rejected"


class RenewalUnit(str, enum.Enum):
    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


class ReminderType(str, enum.Enum):
    WARNING = "warning"
    URGENT = "urgent"
    EXPIRED = "expired"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"
    RENEWAL = "renewal"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    SYSTEM = "system"
    DOCUMENT = "document"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
