# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ActivityAction,
    ApplicationStatus,
    Decision,
    DisclosureType,
    DocumentCategory,
    DocumentStatus,
    EmploymentStatus,
    FinancialEntryType,
    ParticipantRole,
    PayCadence,
    ReasonCode,
    RFIStatus,
    SectionKey,
    TransactionType,
    TransitionKind,
    UserRole,
)
from .models import (
    RFI,
    ActivityLogEntry,
    Application,
    ApplicationSection,
    DecisionRecord,
    Disclosure,
    Document,
    EmploymentRecord,
    FinancialEntry,
    Participant,
    Person,
    RFIMessage,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ActivityAction",
    "ApplicationStatus",
    "Decision",
    "DisclosureType",
    "DocumentCategory",
    "DocumentStatus",
    "EmploymentStatus",
    "FinancialEntryType",
    "ParticipantRole",
    "PayCadence",
    "ReasonCode",
    "RFIStatus",
    "SectionKey",
    "TransactionType",
    "TransitionKind",
    "UserRole",
    # Models
    "ActivityLogEntry",
    "Application",
    "ApplicationSection",
    "DecisionRecord",
    "Disclosure",
    "Document",
    "EmploymentRecord",
    "FinancialEntry",
    "Participant",
    "Person",
    "RFI",
    "RFIMessage",
]
