# This project was developed with assistance from AI tools.
"""Application completeness and submission readiness.

Determines which sections and disclosures a transaction type requires,
derives the completion percentage from section state, and produces the
readiness report shown on the review page. The hard gates reported here
are the same predicates the SUBMIT guard enforces.
"""

import logging

from db.enums import ApplicationStatus, DisclosureType, SectionKey, TransactionType

from ..schemas.application import ApplicationSnapshot
from ..schemas.completeness import ReadinessItem, ReadinessReport
from .workflow import has_government_id, unacknowledged_disclosures

logger = logging.getLogger(__name__)

_BASE_REQUIRED: tuple[SectionKey, ...] = (
    SectionKey.BUILDING_POLICIES,
    SectionKey.PARTIES,
    SectionKey.PEOPLE,
    SectionKey.PROFILE,
    SectionKey.INCOME,
    SectionKey.DOCUMENTS,
)

_BASE_OPTIONAL: tuple[SectionKey, ...] = (
    SectionKey.FINANCIALS,
    SectionKey.REAL_ESTATE,
    SectionKey.COVER_LETTER,
)

_RENTAL_REQUIRED: tuple[SectionKey, ...] = (
    SectionKey.LEASE_TERMS,
    SectionKey.DISCLOSURES,
)

# Disclosures seeded on every lease/sublet application.
_RENTAL_DISCLOSURES: tuple[DisclosureType, ...] = (
    DisclosureType.LEAD_WARNING_STATEMENT,
    DisclosureType.LEAD_DISCLOSURE,
    DisclosureType.EPA_LEAD_PAMPHLET,
    DisclosureType.LOCAL_LAW_38,
    DisclosureType.LOCAL_LAW_55,
    DisclosureType.WINDOW_GUARD,
    DisclosureType.FLOOD_DISCLOSURE,
    DisclosureType.HOUSE_RULES,
    DisclosureType.CONSUMER_REPORT_AUTH,
)


def section_plan(transaction_type: TransactionType) -> list[tuple[SectionKey, bool]]:
    """Return ``(section_key, is_required)`` pairs for a new application."""
    plan = [(key, True) for key in _BASE_REQUIRED]
    if transaction_type.requires_disclosures:
        plan.extend((key, True) for key in _RENTAL_REQUIRED)
    plan.extend((key, False) for key in _BASE_OPTIONAL)
    return plan


def required_disclosures(transaction_type: TransactionType) -> list[DisclosureType]:
    if not transaction_type.requires_disclosures:
        return []
    disclosures = list(_RENTAL_DISCLOSURES)
    if transaction_type == TransactionType.COOP_SUBLET:
        disclosures.append(DisclosureType.SUBLET_POLICY)
    return disclosures


def compute_completion_percentage(sections) -> int:
    """Floor of the completed share of required sections, as 0-100.

    An application with no required sections is 100% complete.
    """
    required = [s for s in sections if s.is_required]
    if not required:
        return 100
    done = sum(1 for s in required if s.is_complete)
    return (100 * done) // len(required)


def check_submission_readiness(snapshot: ApplicationSnapshot) -> ReadinessReport:
    """Build the readiness report for ``snapshot``.

    Items with status ``incomplete`` block submission; ``warning`` items
    are advisory only. Missing financial entries is a warning.
    """
    items: list[ReadinessItem] = []

    missing = sorted(
        s.section_key.value for s in snapshot.sections if s.is_required and not s.is_complete
    )
    items.append(ReadinessItem(
        section="sections",
        requirement="All required sections complete",
        status="complete" if snapshot.completion_percentage == 100 else "incomplete",
        message=(
            "All required sections are complete"
            if snapshot.completion_percentage == 100
            else f"{snapshot.completion_percentage}% complete; missing: {', '.join(missing) or 'none'}"
        ),
    ))

    items.append(ReadinessItem(
        section=SectionKey.FINANCIALS.value,
        requirement="Financial summary",
        status="complete" if snapshot.financial_entry_count > 0 else "warning",
        message=(
            f"{snapshot.financial_entry_count} financial entries"
            if snapshot.financial_entry_count > 0
            else "No financial entries yet; the board may ask for them"
        ),
    ))

    gov_id = has_government_id(snapshot)
    items.append(ReadinessItem(
        section=SectionKey.DOCUMENTS.value,
        requirement="Government-issued ID",
        status="complete" if gov_id else "incomplete",
        message="Government ID uploaded" if gov_id else "Upload a government-issued ID",
    ))

    if snapshot.transaction_type.requires_disclosures:
        pending = unacknowledged_disclosures(snapshot)
        items.append(ReadinessItem(
            section=SectionKey.DISCLOSURES.value,
            requirement="All disclosures acknowledged",
            status="incomplete" if pending else "complete",
            message=(
                f"Awaiting acknowledgement: {', '.join(pending)}"
                if pending
                else "All disclosures acknowledged"
            ),
        ))

    can_submit = snapshot.status == ApplicationStatus.IN_PROGRESS and not any(
        i.status == "incomplete" for i in items
    )
    return ReadinessReport(
        application_id=snapshot.id,
        completion_percentage=snapshot.completion_percentage,
        can_submit=can_submit,
        items=items,
    )
