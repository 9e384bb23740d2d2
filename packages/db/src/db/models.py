# This project was developed with assistance from AI tools.
"""
Board package domain models

Residential board package applications (co-op/condo purchase, sublet, lease)
with their sections, people, employment history, deal parties, documents,
disclosures, RFIs, decisions and the append-only activity log.
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
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
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
    RFIStatus,
    SectionKey,
    TransactionType,
    UserRole,
)


class Application(Base):
    """Board package application (aggregate root).

    ``status``, ``submitted_at`` and ``is_locked`` are written only by the
    transition executor. ``version`` is the compare-and-swap token bumped on
    every committed transition.
    """

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_type = Column(
        Enum(TransactionType, name="transaction_type", native_enum=False),
        nullable=False,
    )
    building_name = Column(String(255), nullable=True)
    unit = Column(String(50), nullable=True)
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=False,
        default=ApplicationStatus.IN_PROGRESS,
    )
    completion_percentage = Column(Integer, nullable=False, default=0)
    is_locked = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    last_activity_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(255), nullable=False, index=True)
    broker_id = Column(String(255), nullable=True, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    sections = relationship(
        "ApplicationSection", back_populates="application", cascade="all, delete-orphan",
    )
    people = relationship(
        "Person", back_populates="application", cascade="all, delete-orphan",
    )
    employment_records = relationship(
        "EmploymentRecord", back_populates="application", cascade="all, delete-orphan",
    )
    financial_entries = relationship(
        "FinancialEntry", back_populates="application", cascade="all, delete-orphan",
    )
    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
    )
    disclosures = relationship(
        "Disclosure", back_populates="application", cascade="all, delete-orphan",
    )
    participants = relationship(
        "Participant", back_populates="application", cascade="all, delete-orphan",
    )
    rfis = relationship(
        "RFI", back_populates="application", cascade="all, delete-orphan",
    )
    decision = relationship(
        "DecisionRecord", back_populates="application", uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}', version={self.version})>"


class ApplicationSection(Base):
    """Completion tracking for one section of an application."""

    __tablename__ = "application_sections"
    __table_args__ = (
        UniqueConstraint("application_id", "section_key", name="uq_app_section"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    section_key = Column(
        Enum(SectionKey, name="section_key", native_enum=False),
        nullable=False,
    )
    is_required = Column(Boolean, nullable=False, default=True)
    is_complete = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("Application", back_populates="sections")

    def __repr__(self):
        return f"<ApplicationSection(app_id={self.application_id}, key='{self.section_key}')>"


class Person(Base):
    """Applicant, co-applicant or guarantor listed on an application."""

    __tablename__ = "people"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = Column(String(255), nullable=True, index=True)
    role = Column(
        Enum(UserRole, name="person_role", native_enum=False),
        nullable=False,
    )
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="people")

    def __repr__(self):
        return f"<Person(id={self.id}, role='{self.role}')>"


class FinancialEntry(Base):
    """Asset, liability, income or expense line on an application."""

    __tablename__ = "financial_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    entry_type = Column(
        Enum(FinancialEntryType, name="financial_entry_type", native_enum=False),
        nullable=False,
    )
    category = Column(String(100), nullable=True)
    institution = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="financial_entries")

    def __repr__(self):
        return f"<FinancialEntry(app_id={self.application_id}, type='{self.entry_type}')>"


class EmploymentRecord(Base):
    """Current or past job of someone on the application."""

    __tablename__ = "employment_records"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_employment_dates"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    employer = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    employment_status = Column(
        Enum(EmploymentStatus, name="employment_status", native_enum=False),
        nullable=False,
    )
    pay_cadence = Column(
        Enum(PayCadence, name="pay_cadence", native_enum=False),
        nullable=False,
        default=PayCadence.ANNUAL,
    )
    annual_income = Column(Numeric(14, 2), nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)
    is_self_employed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="employment_records")

    def __repr__(self):
        return f"<EmploymentRecord(app_id={self.application_id}, employer='{self.employer}')>"


class Participant(Base):
    """Deal party (unit owner, owner's broker, attorneys). Contact details only."""

    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    role = Column(
        Enum(ParticipantRole, name="participant_role", native_enum=False),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="participants")

    def __repr__(self):
        return f"<Participant(app_id={self.application_id}, role='{self.role}')>"


class Document(Base):
    """Document metadata registered against an application."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    category = Column(
        Enum(DocumentCategory, name="document_category", native_enum=False),
        nullable=False,
    )
    filename = Column(String(500), nullable=False)
    status = Column(
        Enum(DocumentStatus, name="document_status", native_enum=False),
        nullable=False,
        default=DocumentStatus.UPLOADED,
    )
    uploaded_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, category='{self.category}')>"


class Disclosure(Base):
    """Legal disclosure the applicant must acknowledge."""

    __tablename__ = "disclosures"
    __table_args__ = (
        UniqueConstraint("application_id", "disclosure_type", name="uq_app_disclosure"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    disclosure_type = Column(
        Enum(DisclosureType, name="disclosure_type", native_enum=False),
        nullable=False,
    )
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_by = Column(String(255), nullable=True)

    application = relationship("Application", back_populates="disclosures")

    def __repr__(self):
        return f"<Disclosure(app_id={self.application_id}, type='{self.disclosure_type}')>"


class RFI(Base):
    """Request for information on one section of an application."""

    __tablename__ = "rfis"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    section_key = Column(
        Enum(SectionKey, name="rfi_section_key", native_enum=False),
        nullable=False,
    )
    status = Column(
        Enum(RFIStatus, name="rfi_status", native_enum=False),
        nullable=False,
        default=RFIStatus.OPEN,
    )
    assignee_role = Column(
        Enum(UserRole, name="rfi_assignee_role", native_enum=False),
        nullable=False,
    )
    created_by = Column(String(255), nullable=False)
    resolved_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    application = relationship("Application", back_populates="rfis")
    messages = relationship(
        "RFIMessage", back_populates="rfi", cascade="all, delete-orphan",
        order_by="RFIMessage.id",
    )

    def __repr__(self):
        return f"<RFI(id={self.id}, section='{self.section_key}', status='{self.status}')>"


class RFIMessage(Base):
    """Append-only message on an RFI thread."""

    __tablename__ = "rfi_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rfi_id = Column(
        Integer, ForeignKey("rfis.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    author_id = Column(String(255), nullable=False)
    author_name = Column(String(255), nullable=True)
    author_role = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    rfi = relationship("RFI", back_populates="messages")

    def __repr__(self):
        return f"<RFIMessage(id={self.id}, rfi_id={self.rfi_id})>"


class DecisionRecord(Base):
    """Terminal board decision. One per application, never revised in place."""

    __tablename__ = "decision_records"
    __table_args__ = (
        UniqueConstraint("application_id", name="uq_decision_application"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    decision = Column(
        Enum(Decision, name="decision", native_enum=False),
        nullable=False,
    )
    reason_codes = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    conditions = Column(Text, nullable=True)
    uses_consumer_report = Column(Boolean, nullable=False, default=False)
    adverse_action_required = Column(Boolean, nullable=False, default=False)
    adverse_action_notice = Column(Text, nullable=True)
    decided_by = Column(String(255), nullable=False)
    decided_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="decision")

    def __repr__(self):
        return f"<DecisionRecord(id={self.id}, decision='{self.decision}')>"


class ActivityLogEntry(Base):
    """Append-only activity trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    application_id = Column(Integer, nullable=True, index=True)
    user_id = Column(String(255), nullable=True)
    user_name = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    action = Column(
        Enum(ActivityAction, name="activity_action", native_enum=False),
        nullable=False,
        index=True,
    )
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<ActivityLogEntry(id={self.id}, action='{self.action}')>"
