# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    DocumentStatus,
    NotificationPriority,
    NotificationType,
    ReminderType,
    RenewalUnit,
    RequirementStatus,
    UserRole,
)
from .models import (
    Document,
    DocumentRequirement,
    DocumentType,
    Notification,
    ReminderLog,
    UserProfile,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "DocumentStatus",
    "NotificationPriority",
    "NotificationType",
    "ReminderType",
    "RenewalUnit",
    "RequirementStatus",
    "UserRole",
    # Models
    "Document",
    "DocumentRequirement",
    "DocumentType",
    "Notification",
    "ReminderLog",
    "UserProfile",
]
