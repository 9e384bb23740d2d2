# This project was developed with assistance from AI tools.
"""Application schemas.

``ApplicationSnapshot`` is the immutable view the workflow guards evaluate.
It is rebuilt from the database for every request and never written back.
"""

from datetime import date, datetime
from decimal import Decimal

from db.enums import (
    ApplicationStatus,
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
from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import Pagination


class SectionState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    section_key: SectionKey
    is_required: bool = True
    is_complete: bool = False


class DisclosureState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    disclosure_type: DisclosureType
    acknowledged: bool = False
    acknowledged_at: datetime | None = None


class DocumentState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    category: DocumentCategory
    filename: str
    status: DocumentStatus = DocumentStatus.UPLOADED


class EmploymentState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    employer: str
    title: str | None = None
    employment_status: EmploymentStatus
    pay_cadence: PayCadence = PayCadence.ANNUAL
    annual_income: Decimal
    start_date: date
    end_date: date | None = None
    is_current: bool = True


class ParticipantState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    role: ParticipantRole
    name: str
    email: str
    phone: str | None = None


class RFIState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    section_key: SectionKey
    status: RFIStatus
    assignee_role: UserRole
    created_by: str


class ApplicationSnapshot(BaseModel):
    """Point-in-time view of an application and the collections guards need."""

    model_config = ConfigDict(frozen=True)

    id: int
    version: int
    status: ApplicationStatus
    transaction_type: TransactionType
    completion_percentage: int = Field(ge=0, le=100)
    is_locked: bool
    submitted_at: datetime | None = None
    last_activity_at: datetime | None = None
    created_by: str
    broker_id: str | None = None
    building_name: str | None = None
    unit: str | None = None
    created_at: datetime | None = None
    sections: list[SectionState] = Field(default_factory=list)
    disclosures: list[DisclosureState] = Field(default_factory=list)
    documents: list[DocumentState] = Field(default_factory=list)
    employment_records: list[EmploymentState] = Field(default_factory=list)
    participants: list[ParticipantState] = Field(default_factory=list)
    rfis: list[RFIState] = Field(default_factory=list)
    financial_entry_count: int = 0
    person_user_ids: list[str] = Field(default_factory=list)
    has_decision: bool = False

    @property
    def open_rfi_count(self) -> int:
        return sum(1 for r in self.rfis if r.status == RFIStatus.OPEN)


class ApplicationCreate(BaseModel):
    transaction_type: TransactionType
    building_name: str | None = None
    unit: str | None = None
    broker_id: str | None = None


class ApplicationListResponse(BaseModel):
    data: list[ApplicationSnapshot]
    pagination: Pagination


class SectionUpdateRequest(BaseModel):
    is_complete: bool


class DocumentCreate(BaseModel):
    """Document metadata. File bytes are handled by the storage collaborator."""

    category: DocumentCategory
    filename: str = Field(min_length=1, max_length=500)


class FinancialEntryCreate(BaseModel):
    entry_type: FinancialEntryType
    amount: Decimal
    category: str | None = None
    institution: str | None = None
    description: str | None = None


class EmploymentRecordCreate(BaseModel):
    employer: str = Field(min_length=1, max_length=255)
    title: str | None = None
    employment_status: EmploymentStatus
    pay_cadence: PayCadence = PayCadence.ANNUAL
    annual_income: Decimal = Field(ge=0)
    start_date: date
    end_date: date | None = None
    is_current: bool = True
    is_self_employed: bool = False

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ParticipantCreate(BaseModel):
    """A deal party. Contact details are required so the agent can reach them."""

    role: ParticipantRole
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = Field(default=None, max_length=50)
