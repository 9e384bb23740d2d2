# This project was developed with assistance from AI tools.
"""Functional tests: submitting an application for review.

Exercises the submit endpoint through the real app with persona overrides:
readiness gates, role checks, double submission and version conflicts.
"""

import pytest
from db.enums import ApplicationStatus

from .data_factory import (
    make_app_incomplete,
    make_app_lease_unacknowledged,
    make_app_ready,
    make_app_ready_without_financials,
    make_app_submitted,
)
from .mock_db import cas_values, make_mock_session
from .personas import applicant_dana, board_member, broker, broker_other

pytestmark = pytest.mark.functional


class TestSubmitSucceeds:
    def test_owner_submits_ready_application(self, make_client):
        session = make_mock_session(single=make_app_ready())
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/201/submit")

        assert resp.status_code == 200
        assert resp.json()["id"] == 201
        values = cas_values(session)
        assert values["status"] == ApplicationStatus.SUBMITTED
        assert values["is_locked"] is True
        assert values["submitted_at"] is not None
        assert values["version"] == 4
        session.commit.assert_awaited_once()

    def test_unfinished_financials_do_not_block_submit(self, make_client):
        session = make_mock_session(single=make_app_ready_without_financials())
        client = make_client(applicant_dana(), session)

        readiness = client.get("/api/applications/208/readiness").json()
        resp = client.post("/api/applications/208/submit")

        assert readiness["can_submit"] is True
        assert {i["section"]: i["status"] for i in readiness["items"]}["financials"] == "warning"
        assert resp.status_code == 200
        assert cas_values(session)["status"] == ApplicationStatus.SUBMITTED

    def test_authorized_broker_submits(self, make_client):
        session = make_mock_session(single=make_app_ready())
        client = make_client(broker(), session)

        resp = client.post("/api/applications/201/submit", json={"expected_version": 3})

        assert resp.status_code == 200
        session.commit.assert_awaited_once()

    def test_generic_transition_endpoint_submits(self, make_client):
        session = make_mock_session(single=make_app_ready())
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/201/transitions", json={"kind": "submit"})

        assert resp.status_code == 200
        assert cas_values(session)["status"] == ApplicationStatus.SUBMITTED


class TestSubmitRejected:
    def test_incomplete_application(self, make_client):
        session = make_mock_session(single=make_app_incomplete())
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/202/submit")

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "precondition_failed"
        assert body["errors"]["reason"] == "completion"
        session.commit.assert_not_awaited()

    def test_condo_lease_with_pending_disclosures(self, make_client):
        client = make_client(applicant_dana(), make_mock_session(single=make_app_lease_unacknowledged()))

        resp = client.post("/api/applications/203/submit")

        assert resp.status_code == 422
        body = resp.json()
        assert body["errors"]["reason"] == "disclosures"
        assert "WINDOW_GUARD" in body["errors"]["failures"]

    def test_second_submit_is_already_submitted(self, make_client):
        session = make_mock_session(single=make_app_submitted())
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/204/submit")

        assert resp.status_code == 409
        assert resp.json()["code"] == "already_submitted"
        session.commit.assert_not_awaited()

    def test_board_cannot_submit(self, make_client):
        client = make_client(board_member(), make_mock_session(single=make_app_ready()))
        resp = client.post("/api/applications/201/submit")
        assert resp.status_code == 403
        assert resp.json()["code"] == "unauthorized"

    def test_unrelated_broker_cannot_submit(self, make_client):
        client = make_client(broker_other(), make_mock_session(single=make_app_ready()))
        resp = client.post("/api/applications/201/submit")
        assert resp.status_code == 403

    def test_stale_expected_version(self, make_client):
        session = make_mock_session(single=make_app_ready())
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/201/submit", json={"expected_version": 1})

        assert resp.status_code == 409
        body = resp.json()
        assert body["code"] == "concurrency_conflict"
        assert body["errors"]["current_version"] == 3

    def test_lost_version_race(self, make_client):
        session = make_mock_session(single=make_app_ready(), rowcount=0)
        client = make_client(applicant_dana(), session)

        resp = client.post("/api/applications/201/submit")

        assert resp.status_code == 409
        assert resp.json()["code"] == "concurrency_conflict"
        session.rollback.assert_awaited()
        session.commit.assert_not_awaited()

    def test_out_of_scope_application_is_404(self, make_client):
        """Scope filtering returns nothing, which the route reports as 404."""
        client = make_client(applicant_dana(), make_mock_session(single=None))
        resp = client.post("/api/applications/301/submit")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Application not found"


class TestApplicantEdits:
    def test_section_edit_after_submit_rejected(self, make_client):
        session = make_mock_session(single=make_app_submitted())
        client = make_client(applicant_dana(), session)

        resp = client.patch("/api/applications/204/sections/income", json={"is_complete": False})

        assert resp.status_code == 422
        assert resp.json()["errors"]["reason"] == "locked"
        session.commit.assert_not_awaited()

    def test_section_edit_while_in_progress(self, make_client):
        session = make_mock_session(single=make_app_incomplete())
        client = make_client(applicant_dana(), session)

        resp = client.patch("/api/applications/202/sections/income", json={"is_complete": True})

        assert resp.status_code == 200
        assert cas_values(session)["completion_percentage"] == 16
        session.commit.assert_awaited_once()

    def test_readiness_lists_blockers(self, make_client):
        client = make_client(applicant_dana(), make_mock_session(single=make_app_lease_unacknowledged()))

        resp = client.get("/api/applications/203/readiness")

        assert resp.status_code == 200
        body = resp.json()
        assert body["can_submit"] is False
        statuses = {i["section"]: i["status"] for i in body["items"]}
        assert statuses["disclosures"] == "incomplete"

    def test_employment_added_while_in_progress(self, make_client):
        session = make_mock_session(single=make_app_incomplete())
        client = make_client(applicant_dana(), session)

        resp = client.post(
            "/api/applications/202/employment",
            json={
                "employer": "Mount Sinai",
                "employment_status": "FULL_TIME",
                "annual_income": "185000",
                "start_date": "2019-09-01",
            },
        )

        assert resp.status_code == 201
        added = session.add.call_args_list[0].args[0]
        assert added.employer == "Mount Sinai"
        session.commit.assert_awaited_once()

    def test_employment_after_submit_rejected(self, make_client):
        session = make_mock_session(single=make_app_submitted())
        client = make_client(applicant_dana(), session)

        resp = client.post(
            "/api/applications/204/employment",
            json={
                "employer": "Acme",
                "employment_status": "PART_TIME",
                "annual_income": "32000",
                "start_date": "2024-01-02",
            },
        )

        assert resp.status_code == 422
        assert resp.json()["errors"]["reason"] == "locked"
        session.commit.assert_not_awaited()

    def test_participant_after_submit_rejected(self, make_client):
        session = make_mock_session(single=make_app_submitted())
        client = make_client(broker(), session)

        resp = client.post(
            "/api/applications/204/participants",
            json={"role": "OWNER_ATTORNEY", "name": "Ruth Klein", "email": "rk@law.example"},
        )

        assert resp.status_code == 422
        assert resp.json()["errors"]["reason"] == "locked"
        session.commit.assert_not_awaited()

    def test_participant_email_validated(self, make_client):
        client = make_client(applicant_dana(), make_mock_session(single=make_app_incomplete()))

        resp = client.post(
            "/api/applications/202/participants",
            json={"role": "UNIT_OWNER", "name": "Seller", "email": "not-an-email"},
        )

        assert resp.status_code == 422
