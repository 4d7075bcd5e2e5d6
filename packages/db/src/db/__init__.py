# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ApplicationStatus,
    DispatchKind,
    DispatchStatus,
    DocumentType,
    NotificationType,
    UserRole,
)
from .models import (
    Applicant,
    Application,
    ApplicationComment,
    AuditEvent,
    Dispatch,
    District,
    Document,
    Notification,
    NotificationRead,
    Province,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationStatus",
    "UserRole",
    "DocumentType",
    "NotificationType",
    "DispatchKind",
    "DispatchStatus",
    # Models
    "Applicant",
    "Application",
    "ApplicationComment",
    "AuditEvent",
    "Dispatch",
    "District",
    "Document",
    "Notification",
    "NotificationRead",
    "Province",
]
