# This project was developed with assistance from AI tools.
"""
Document compliance -- domain models

Personnel profiles, document type policies, per-person document
requirements, submitted documents, the reminder audit log, and in-app
notifications.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    DocumentStatus,
    NotificationPriority,
    NotificationType,
    ReminderType,
    RenewalUnit,
    RequirementStatus,
    UserRole,
)


def _enum_values(enum_cls) -> list[str]:
    """Persist enum values (``"pending"``), not member names (``"PENDING"``)."""
    return [member.value for member in enum_cls]


class UserProfile(Base):
    """Person who holds document obligations, linked to Keycloak identity."""

    __tablename__ = "user_profiles"

    id = Column(String(255), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    department = Column(String(100), nullable=True, index=True)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    requirements = relationship("DocumentRequirement", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<UserProfile(id={self.id}, name='{self.first_name} {self.last_name}')>"


class DocumentType(Base):
    """Policy for one document category (validity, reminder windows, renewal)."""

    __tablename__ = "document_types"
    __table_args__ = (
        CheckConstraint(
            "urgent_reminder_days < reminder_before_days",
            name="ck_document_types_reminder_windows",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_mandatory = Column(Boolean, nullable=False, default=True)
    validity_period_months = Column(Integer, nullable=True)
    reminder_before_days = Column(Integer, nullable=False, default=30)
    urgent_reminder_days = Column(Integer, nullable=False, default=7)
    has_renewal = Column(Boolean, nullable=False, default=False)
    renewal_period = Column(Integer, nullable=True)
    renewal_unit = Column(
        Enum(RenewalUnit, name="renewal_unit", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=RenewalUnit.MONTHS,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    requirements = relationship("DocumentRequirement", back_populates="document_type")

    def __repr__(self):
        return f"<DocumentType(id={self.id}, name='{self.name}')>"


class Document(Base):
    """Document file submitted by a person (upload handled elsewhere)."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(255), ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = Column(String(500), nullable=False)
    file_path = Column(String(500), nullable=True)
    status = Column(
        Enum(DocumentStatus, name="document_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=DocumentStatus.PENDING,
    )
    expiration_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Document(id={self.id}, status='{self.status}')>"


class DocumentRequirement(Base):
    """Obligation of one person to hold one document type by a deadline."""

    __tablename__ = "document_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(255), ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type_id = Column(
        Integer, ForeignKey("document_types.id"), nullable=False, index=True,
    )
    document_id = Column(
        Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True,
    )
    required_date = Column(Date, nullable=False)
    status = Column(
        Enum(RequirementStatus, name="requirement_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=RequirementStatus.PENDING,
        index=True,
    )
    expiration_date = Column(Date, nullable=True, index=True)
    next_renewal_date = Column(Date, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    reminder_sent_count = Column(Integer, nullable=False, default=0)
    last_reminder_sent = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("UserProfile", back_populates="requirements")
    document_type = relationship("DocumentType", back_populates="requirements")
    document = relationship("Document")
    reminders = relationship("ReminderLog", back_populates="requirement")

    def __repr__(self):
        return f"<DocumentRequirement(id={self.id}, status='{self.status}')>"


class ReminderLog(Base):
    """Append-only record of a reminder sent for a requirement. Never updated."""

    __tablename__ = "document_reminders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requirement_id = Column(
        Integer,
        ForeignKey("document_requirements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(255), nullable=False, index=True)
    reminder_type = Column(
        Enum(ReminderType, name="reminder_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    days_offset = Column(Integer, nullable=False)
    notification_id = Column(Integer, nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    requirement = relationship("DocumentRequirement", back_populates="reminders")

    def __repr__(self):
        return f"<ReminderLog(req_id={self.requirement_id}, type='{self.reminder_type}')>"


class Notification(Base):
    """In-app notification addressed to one user."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=NotificationType.INFO,
    )
    priority = Column(
        Enum(NotificationPriority, name="notification_priority", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=NotificationPriority.MEDIUM,
    )
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user='{self.user_id}', title='{self.title}')>"
