# This project was developed with assistance from AI tools.
"""Tests for section plans, completion percentage and the readiness report."""

import pytest
from db.enums import ApplicationStatus, DisclosureType, SectionKey, TransactionType

from src.schemas.application import SectionState
from src.services.completeness import (
    check_submission_readiness,
    compute_completion_percentage,
    required_disclosures,
    section_plan,
)

from .factories import make_snapshot


def _items(report):
    return {i.section: i for i in report.items}


# ---------------------------------------------------------------------------
# Section plan / disclosures
# ---------------------------------------------------------------------------


def test_purchase_plan_has_no_lease_sections():
    keys = {k for k, required in section_plan(TransactionType.COOP_PURCHASE) if required}
    assert SectionKey.LEASE_TERMS not in keys
    assert SectionKey.DISCLOSURES not in keys
    assert SectionKey.INCOME in keys


def test_lease_plan_requires_lease_terms_and_disclosures():
    keys = {k for k, required in section_plan(TransactionType.CONDO_LEASE) if required}
    assert {SectionKey.LEASE_TERMS, SectionKey.DISCLOSURES} <= keys


def test_optional_sections_are_not_required():
    plan = dict(section_plan(TransactionType.CONDO_PURCHASE))
    assert plan[SectionKey.FINANCIALS] is False
    assert plan[SectionKey.REAL_ESTATE] is False
    assert plan[SectionKey.COVER_LETTER] is False


def test_required_disclosures_by_transaction_type():
    assert required_disclosures(TransactionType.COOP_PURCHASE) == []
    lease = required_disclosures(TransactionType.CONDO_LEASE)
    sublet = required_disclosures(TransactionType.COOP_SUBLET)
    assert DisclosureType.WINDOW_GUARD in lease
    assert DisclosureType.SUBLET_POLICY not in lease
    assert set(sublet) == set(lease) | {DisclosureType.SUBLET_POLICY}


# ---------------------------------------------------------------------------
# compute_completion_percentage
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "done,total,expected",
    [(0, 7, 0), (1, 3, 33), (2, 3, 66), (6, 7, 85), (7, 7, 100)],
)
def test_completion_is_floored(done, total, expected):
    sections = [
        SectionState(section_key=key, is_required=True, is_complete=i < done)
        for i, key in enumerate(list(SectionKey)[:total])
    ]
    assert compute_completion_percentage(sections) == expected


def test_optional_sections_do_not_count():
    sections = [
        SectionState(section_key=SectionKey.PROFILE, is_required=True, is_complete=True),
        SectionState(section_key=SectionKey.COVER_LETTER, is_required=False, is_complete=False),
    ]
    assert compute_completion_percentage(sections) == 100


def test_no_required_sections_is_complete():
    assert compute_completion_percentage([]) == 100


# ---------------------------------------------------------------------------
# Readiness report
# ---------------------------------------------------------------------------


def test_ready_application_can_submit():
    report = check_submission_readiness(make_snapshot())
    assert report.can_submit is True
    assert report.blockers == []


def test_incomplete_sections_block():
    report = check_submission_readiness(make_snapshot(completion=57))
    items = _items(report)
    assert report.can_submit is False
    assert items["sections"].status == "incomplete"
    assert "57%" in items["sections"].message


def test_missing_financial_entries_is_only_a_warning():
    report = check_submission_readiness(make_snapshot(financial_entry_count=0))
    assert report.can_submit is True
    assert [w.section for w in report.warnings] == ["financials"]


def test_missing_government_id_blocks():
    report = check_submission_readiness(make_snapshot(gov_id=False))
    assert report.can_submit is False
    assert _items(report)["documents"].status == "incomplete"


def test_disclosures_item_only_for_rentals():
    assert "disclosures" not in _items(check_submission_readiness(make_snapshot()))

    report = check_submission_readiness(
        make_snapshot(transaction_type=TransactionType.CONDO_LEASE, acknowledged=False),
    )
    item = _items(report)["disclosures"]
    assert item.status == "incomplete"
    assert "WINDOW_GUARD" in item.message
    assert report.can_submit is False


def test_submitted_application_cannot_submit_again():
    report = check_submission_readiness(make_snapshot(status=ApplicationStatus.SUBMITTED))
    assert report.blockers == []
    assert report.can_submit is False


def test_unfinished_financials_do_not_hold_back_completion():
    sections = [
        SectionState(section_key=key, is_required=required, is_complete=key != SectionKey.FINANCIALS)
        for key, required in section_plan(TransactionType.COOP_PURCHASE)
    ]
    snapshot = make_snapshot(
        completion=compute_completion_percentage(sections), sections=sections, financial_entry_count=0,
    )

    report = check_submission_readiness(snapshot)

    assert snapshot.completion_percentage == 100
    assert report.can_submit is True
    assert report.blockers == []
    assert [w.section for w in report.warnings] == ["financials"]
