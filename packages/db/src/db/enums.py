# This project was developed with assistance from AI tools.
"""
Domain enums for the board package review lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"
    RFI = "RFI"
    APPROVED = "APPROVED"
    CONDITIONAL = "CONDITIONAL"
    DENIED = "DENIED"

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses with no further workflow transition."""
        return frozenset({cls.APPROVED, cls.CONDITIONAL, cls.DENIED})

    @classmethod
    def reviewable_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses in which reviewers may raise RFIs."""
        return frozenset({cls.IN_REVIEW, cls.RFI})


class TransitionKind(str, enum.Enum):
    SUBMIT = "submit"
    BEGIN_REVIEW = "begin_review"
    RAISE_RFI = "raise_rfi"
    RESOLVE_LAST_OPEN_RFI = "resolve_last_open_rfi"
    DECIDE = "decide"


class UserRole(str, enum.Enum):
    APPLICANT = "APPLICANT"
    CO_APPLICANT = "CO_APPLICANT"
    GUARANTOR = "GUARANTOR"
    BROKER = "BROKER"
    TRANSACTION_AGENT = "TRANSACTION_AGENT"
    ADMIN = "ADMIN"
    BOARD = "BOARD"

    @classmethod
    def reviewer_roles(cls) -> frozenset["UserRole"]:
        """Roles that run the review: begin review, raise and resolve RFIs."""
        return frozenset({cls.ADMIN, cls.TRANSACTION_AGENT})

    @classmethod
    def decision_roles(cls) -> frozenset["UserRole"]:
        """Roles allowed to record a board decision."""
        return frozenset({cls.ADMIN, cls.TRANSACTION_AGENT, cls.BOARD})

    @classmethod
    def party_roles(cls) -> frozenset["UserRole"]:
        """Applicant-side roles, scoped to their own applications."""
        return frozenset({cls.APPLICANT, cls.CO_APPLICANT, cls.GUARANTOR})


class TransactionType(str, enum.Enum):
    COOP_PURCHASE = "COOP_PURCHASE"
    CONDO_PURCHASE = "CONDO_PURCHASE"
    COOP_SUBLET = "COOP_SUBLET"
    CONDO_LEASE = "CONDO_LEASE"

    @property
    def requires_disclosures(self) -> bool:
        """Lease and sublet transactions carry legal disclosures."""
        return self in (TransactionType.CONDO_LEASE, TransactionType.COOP_SUBLET)


class SectionKey(str, enum.Enum):
    PROFILE = "profile"
    PEOPLE = "people"
    INCOME = "income"
    FINANCIALS = "financials"
    REAL_ESTATE = "real_estate"
    DOCUMENTS = "documents"
    DISCLOSURES = "disclosures"
    PARTIES = "parties"
    LEASE_TERMS = "lease_terms"
    BUILDING_POLICIES = "building_policies"
    COVER_LETTER = "cover_letter"


class DocumentCategory(str, enum.Enum):
    GOVERNMENT_ID = "GOVERNMENT_ID"
    BANK_STATEMENT = "BANK_STATEMENT"
    TAX_RETURN = "TAX_RETURN"
    REFERENCE_LETTER = "REFERENCE_LETTER"
    BUILDING_FORM = "BUILDING_FORM"
    PAYSTUB = "PAYSTUB"
    W2 = "W2"
    OTHER = "OTHER"


class DocumentStatus(str, enum.Enum):
    PENDING = "PENDING"
    UPLOADED = "UPLOADED"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class DisclosureType(str, enum.Enum):
    LEAD_PAINT_CERTIFICATION = "LEAD_PAINT_CERTIFICATION"
    LEAD_WARNING_STATEMENT = "LEAD_WARNING_STATEMENT"
    LEAD_DISCLOSURE = "LEAD_DISCLOSURE"
    EPA_LEAD_PAMPHLET = "EPA_LEAD_PAMPHLET"
    LOCAL_LAW_38 = "LOCAL_LAW_38"
    LOCAL_LAW_55 = "LOCAL_LAW_55"
    WINDOW_GUARD = "WINDOW_GUARD"
    FLOOD_DISCLOSURE = "FLOOD_DISCLOSURE"
    HOUSE_RULES = "HOUSE_RULES"
    CONSUMER_REPORT_AUTH = "CONSUMER_REPORT_AUTH"
    SUBLET_POLICY = "SUBLET_POLICY"
    PET_ACKNOWLEDGEMENT = "PET_ACKNOWLEDGEMENT"
    SMOKE_DETECTOR = "SMOKE_DETECTOR"
    CARBON_MONOXIDE_DETECTOR = "CARBON_MONOXIDE_DETECTOR"
    PERSONAL_INFO_AUTH = "PERSONAL_INFO_AUTH"
    BACKGROUND_CHECK_CONSENT = "BACKGROUND_CHECK_CONSENT"
    REFERENCE_CONTACT_AUTH = "REFERENCE_CONTACT_AUTH"
    EMPLOYMENT_VERIFICATION_AUTH = "EMPLOYMENT_VERIFICATION_AUTH"
    FINANCIAL_VERIFICATION_AUTH = "FINANCIAL_VERIFICATION_AUTH"
    MOVE_IN_DATE_COMMITMENT = "MOVE_IN_DATE_COMMITMENT"
    INSURANCE_REQUIREMENTS = "INSURANCE_REQUIREMENTS"


class FinancialEntryType(str, enum.Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    MONTHLY_INCOME = "MONTHLY_INCOME"
    MONTHLY_EXPENSE = "MONTHLY_EXPENSE"


class EmploymentStatus(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    UNEMPLOYED = "UNEMPLOYED"
    RETIRED = "RETIRED"
    STUDENT = "STUDENT"


class PayCadence(str, enum.Enum):
    ANNUAL = "ANNUAL"
    MONTHLY = "MONTHLY"
    BIWEEKLY = "BIWEEKLY"
    WEEKLY = "WEEKLY"


class ParticipantRole(str, enum.Enum):
    """Deal parties on the seller's side and counsel. They never log in."""

    UNIT_OWNER = "UNIT_OWNER"
    OWNER_BROKER = "OWNER_BROKER"
    OWNER_ATTORNEY = "OWNER_ATTORNEY"
    APPLICANT_ATTORNEY = "APPLICANT_ATTORNEY"


class RFIStatus(str, enum.Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class Decision(str, enum.Enum):
    APPROVED = "APPROVED"
    CONDITIONAL = "CONDITIONAL"
    DENIED = "DENIED"

    @property
    def is_unfavorable(self) -> bool:
        return self in (Decision.CONDITIONAL, Decision.DENIED)


class ReasonCode(str, enum.Enum):
    INCOME_INSUFFICIENT = "income_insufficient"
    DTI_TOO_HIGH = "dti_too_high"
    INCOMPLETE_DOCUMENTATION = "incomplete_documentation"
    UNSATISFACTORY_REFERENCES = "unsatisfactory_references"
    BOARD_POLICY_CRITERIA_NOT_MET = "board_policy_criteria_not_met"
    OTHER = "other"


class ActivityAction(str, enum.Enum):
    APPLICATION_CREATED = "APPLICATION_CREATED"
    APPLICATION_UPDATED = "APPLICATION_UPDATED"
    APPLICATION_SUBMITTED = "APPLICATION_SUBMITTED"
    REVIEW_STARTED = "REVIEW_STARTED"
    RFI_CREATED = "RFI_CREATED"
    RFI_MESSAGE_SENT = "RFI_MESSAGE_SENT"
    RFI_RESOLVED = "RFI_RESOLVED"
    STATUS_CHANGED = "STATUS_CHANGED"
    DECISION_CREATED = "DECISION_CREATED"
