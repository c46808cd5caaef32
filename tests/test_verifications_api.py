"""Tests for the verification endpoints."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from safewatch.models.observation import CorrectiveActionStatus, ObservationStatus, Verification
from safewatch.models.user import UserRole

COMPLETED = CorrectiveActionStatus.COMPLETED


class TestPendingEndpoints:
    """Pending list and counter are restricted to verifier roles."""

    def test_pending_list(
        self, test_client: TestClient, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        make_observation(reporter=reporter)

        response = test_client.get("/api/verifications/pending", headers=auth_headers(officer))

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == [observation.id]
        assert data[0]["reported_by_name"] == "Rita Reporter"
        assert data[0]["corrective_action_status"] == "Completed"

    def test_pending_count(
        self, test_client: TestClient, reporter, make_user, auth_headers, make_observation
    ) -> None:
        hse = make_user(role=UserRole.HSE)
        make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.get("/api/verifications/pending/count", headers=auth_headers(hse))

        assert response.status_code == 200
        assert response.json() == {"count": 2}

    def test_plain_user_forbidden(self, test_client: TestClient, reporter, auth_headers) -> None:
        response = test_client.get("/api/verifications/pending", headers=auth_headers(reporter))

        assert response.status_code == 403
        assert "error" in response.json()

    def test_requires_token(self, test_client: TestClient) -> None:
        response = test_client.get("/api/verifications/pending")

        assert response.status_code in (401, 403)


class TestApproveEndpoint:
    """POST /api/verifications/{id}/approve"""

    def test_approve(
        self, test_client: TestClient, db: Session, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve",
            headers=auth_headers(officer),
            json={"remarks": "Barrier installed"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Observation approved and closed successfully",
            "points_awarded": True,
        }
        db.expire_all()
        assert observation.status == ObservationStatus.CLOSED
        assert reporter.points == 5

    def test_missing_reporter_reported(
        self, test_client: TestClient, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reported_by_id="GONE", corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve",
            headers=auth_headers(officer),
            json={"remarks": "Fixed"},
        )

        assert response.status_code == 200
        assert response.json()["points_awarded"] is False

    def test_empty_remarks(
        self, test_client: TestClient, db: Session, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve",
            headers=auth_headers(officer),
            json={"remarks": "   "},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Remarks are required for verification"}
        db.expire_all()
        assert observation.status == ObservationStatus.OPEN

    def test_no_body(self, test_client: TestClient, reporter, officer, auth_headers, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve", headers=auth_headers(officer)
        )

        assert response.status_code == 400

    def test_self_verification(
        self, test_client: TestClient, db: Session, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=officer, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve",
            headers=auth_headers(officer),
            json={"remarks": "All good"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "You cannot verify your own observation"}
        db.expire_all()
        assert observation.status == ObservationStatus.OPEN
        assert db.query(Verification).count() == 0

    def test_unknown_observation(self, test_client: TestClient, officer, auth_headers) -> None:
        response = test_client.post(
            "/api/verifications/999/approve",
            headers=auth_headers(officer),
            json={"remarks": "x"},
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Observation not found"}

    def test_already_closed(
        self, test_client: TestClient, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        url = f"/api/verifications/{observation.id}/approve"

        first = test_client.post(url, headers=auth_headers(officer), json={"remarks": "ok"})
        second = test_client.post(url, headers=auth_headers(officer), json={"remarks": "ok again"})

        assert first.status_code == 200
        assert second.status_code == 409

    def test_plain_user_cannot_approve(
        self, test_client: TestClient, make_user, reporter, auth_headers, make_observation
    ) -> None:
        colleague = make_user()
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/approve",
            headers=auth_headers(colleague),
            json={"remarks": "ok"},
        )

        assert response.status_code == 403


class TestRejectEndpoint:
    """POST /api/verifications/{id}/reject"""

    def test_reject(
        self, test_client: TestClient, db: Session, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/reject",
            headers=auth_headers(officer),
            json={"remarks": "Guard still loose"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        db.expire_all()
        assert observation.status == ObservationStatus.OPEN
        assert observation.corrective_action_status == CorrectiveActionStatus.IN_PROGRESS

        pending = test_client.get("/api/verifications/pending/count", headers=auth_headers(officer))
        assert pending.json() == {"count": 0}

    def test_reject_self(self, test_client: TestClient, officer, auth_headers, make_observation) -> None:
        observation = make_observation(reporter=officer, corrective_action_status=COMPLETED)

        response = test_client.post(
            f"/api/verifications/{observation.id}/reject",
            headers=auth_headers(officer),
            json={"remarks": "nope"},
        )

        assert response.status_code == 403


class TestHistoryAndStatusLog:
    """Decision history newest first; status log oldest first."""

    def test_history_and_log(
        self, test_client: TestClient, reporter, officer, auth_headers, make_observation
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        headers = auth_headers(officer)

        test_client.post(
            f"/api/verifications/{observation.id}/reject", headers=headers, json={"remarks": "Redo"}
        )
        test_client.put(
            f"/api/observations/{observation.id}/corrective-action",
            headers=auth_headers(reporter),
            json={"status": "Completed"},
        )
        test_client.post(
            f"/api/verifications/{observation.id}/approve", headers=headers, json={"remarks": "Done"}
        )

        history = test_client.get(f"/api/verifications/history/{observation.id}", headers=headers)
        assert history.status_code == 200
        assert [(h["status"], h["remarks"], h["verifier_name"]) for h in history.json()] == [
            ("APPROVED", "Done", "Omar Officer"),
            ("REJECTED", "Redo", "Omar Officer"),
        ]

        log = test_client.get(f"/api/status-log/observation/{observation.id}", headers=headers)
        assert log.status_code == 200
        assert [(e["previous_status"], e["new_status"]) for e in log.json()] == [
            ("Open", "Rejected - Returned for Correction"),
            ("Open", "Closed"),
        ]
        assert log.json()[0]["actor_name"] == "Omar Officer"

    def test_history_of_unknown_observation_is_empty(
        self, test_client: TestClient, officer, auth_headers
    ) -> None:
        response = test_client.get("/api/verifications/history/777", headers=auth_headers(officer))

        assert response.status_code == 200
        assert response.json() == []


class TestEndToEnd:
    """Report, complete the corrective action, then approve or reject over HTTP."""

    def _report_and_complete(self, test_client: TestClient, headers: dict) -> int:
        created = test_client.post(
            "/api/observations",
            headers=headers,
            json={"risk_level": "High", "description": "Trench edge unprotected"},
        )
        observation_id = created.json()["id"]
        test_client.put(
            f"/api/observations/{observation_id}/corrective-action",
            headers=headers,
            json={"status": "Completed"},
        )
        return observation_id

    def test_approve_scenario(
        self, test_client: TestClient, db: Session, reporter, officer, auth_headers
    ) -> None:
        observation_id = self._report_and_complete(test_client, auth_headers(reporter))

        response = test_client.post(
            f"/api/verifications/{observation_id}/approve",
            headers=auth_headers(officer),
            json={"remarks": "verified onsite"},
        )

        assert response.json()["success"] is True
        observation = test_client.get(f"/api/observations/{observation_id}").json()
        assert observation["status"] == "Closed"
        db.expire_all()
        assert reporter.points == 15
        rows = db.query(Verification).filter(Verification.observation_id == observation_id).all()
        assert [(v.status.value, v.remarks) for v in rows] == [("APPROVED", "verified onsite")]

    def test_reject_scenario(
        self, test_client: TestClient, db: Session, reporter, officer, auth_headers
    ) -> None:
        observation_id = self._report_and_complete(test_client, auth_headers(reporter))

        response = test_client.post(
            f"/api/verifications/{observation_id}/reject",
            headers=auth_headers(officer),
            json={"remarks": "insufficient evidence"},
        )

        assert response.json()["success"] is True
        observation = test_client.get(f"/api/observations/{observation_id}").json()
        assert observation["status"] == "Open"
        assert observation["corrective_action_status"] == "In Progress"
        db.expire_all()
        assert reporter.points == 10
        rows = db.query(Verification).filter(Verification.observation_id == observation_id).all()
        assert [v.status.value for v in rows] == ["REJECTED"]
