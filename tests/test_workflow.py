"""Tests for the observation verification workflow."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from safewatch.core import workflow
from safewatch.core.audit import CORRECTIVE_ACTION_ENTITY, OBSERVATION_ENTITY
from safewatch.core.errors import (
    AuthorizationError,
    NotFoundError,
    StateTransitionError,
    StorageError,
    ValidationError,
)
from safewatch.core.workflow import (
    REJECTED_STATUS_TEXT,
    approve_observation,
    can_transition,
    count_pending_verifications,
    list_pending_verifications,
    reject_observation,
    update_corrective_action,
    verification_history,
)
from safewatch.models.audit import StatusLog
from safewatch.models.observation import (
    CorrectiveActionStatus,
    ObservationStatus,
    Verification,
    VerificationDecision,
)
from safewatch.models.points import PointsHistory
from safewatch.models.user import UserRole

COMPLETED = CorrectiveActionStatus.COMPLETED
IN_PROGRESS = CorrectiveActionStatus.IN_PROGRESS
NOT_STARTED = CorrectiveActionStatus.NOT_STARTED


def _log_rows(db: Session, entity_type: str, entity_id: int):
    return (
        db.query(StatusLog)
        .filter(StatusLog.entity_type == entity_type, StatusLog.entity_id == entity_id)
        .order_by(StatusLog.id)
        .all()
    )


class TestCorrectiveActionTransitions:
    """Corrective action moves Not Started -> In Progress -> Completed, and back on rework."""

    @pytest.mark.parametrize(
        "current,target,allowed",
        [
            (NOT_STARTED, IN_PROGRESS, True),
            (NOT_STARTED, COMPLETED, True),
            (IN_PROGRESS, COMPLETED, True),
            (COMPLETED, IN_PROGRESS, True),
            (IN_PROGRESS, NOT_STARTED, False),
            (COMPLETED, NOT_STARTED, False),
            (IN_PROGRESS, IN_PROGRESS, True),
        ],
    )
    def test_can_transition(self, current, target, allowed) -> None:
        assert can_transition(current, target) is allowed

    def test_update_records_status_log(self, db: Session, reporter, make_observation) -> None:
        observation = make_observation(reporter=reporter)

        updated = update_corrective_action(
            db, observation.id, reporter, IN_PROGRESS, due_date="2024-06-01", assigned_to="Crew B"
        )

        assert updated.corrective_action_status == IN_PROGRESS
        assert updated.corrective_action_due_date == "2024-06-01"
        assert updated.corrective_action_assigned_to == "Crew B"
        rows = _log_rows(db, CORRECTIVE_ACTION_ENTITY, observation.id)
        assert [(r.previous_status, r.new_status) for r in rows] == [("Not Started", "In Progress")]

    def test_backwards_transition_rejected(self, db: Session, reporter, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=IN_PROGRESS)

        with pytest.raises(StateTransitionError):
            update_corrective_action(db, observation.id, reporter, NOT_STARTED)

        db.expire_all()
        assert observation.corrective_action_status == IN_PROGRESS

    def test_closed_observation_is_frozen(self, db: Session, reporter, make_observation) -> None:
        observation = make_observation(
            reporter=reporter, status=ObservationStatus.CLOSED, corrective_action_status=COMPLETED
        )

        with pytest.raises(StateTransitionError):
            update_corrective_action(db, observation.id, reporter, IN_PROGRESS)

    def test_unknown_observation(self, db: Session, reporter) -> None:
        with pytest.raises(NotFoundError):
            update_corrective_action(db, 404, reporter, IN_PROGRESS)


class TestPendingVerifications:
    """Only open observations with a completed corrective action are pending."""

    def test_listed_exactly_once(self, db: Session, reporter, make_observation) -> None:
        pending = make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        make_observation(reporter=reporter, corrective_action_status=IN_PROGRESS)
        make_observation(
            reporter=reporter, status=ObservationStatus.CLOSED, corrective_action_status=COMPLETED
        )

        rows = list_pending_verifications(db)

        assert [observation.id for observation, _ in rows] == [pending.id]
        assert rows[0][1] == "Rita Reporter"
        assert count_pending_verifications(db) == 1

    def test_unknown_reporter_has_no_name(self, db: Session, make_observation) -> None:
        make_observation(reported_by_id="GHOST", corrective_action_status=COMPLETED)

        rows = list_pending_verifications(db)

        assert len(rows) == 1
        assert rows[0][1] is None

    def test_newest_first(self, db: Session, reporter, make_observation) -> None:
        first = make_observation(reporter=reporter, corrective_action_status=COMPLETED)
        second = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        rows = list_pending_verifications(db)

        assert [observation.id for observation, _ in rows] == [second.id, first.id]


class TestApproveObservation:
    """Approval closes the observation, records the decision and rewards the reporter."""

    def test_approve_closes_and_awards(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        outcome = approve_observation(db, observation.id, officer, "  Guard refitted  ")

        assert outcome.points_awarded is True
        db.expire_all()
        assert observation.status == ObservationStatus.CLOSED
        assert observation.closed_by == "Omar Officer"
        assert observation.closed_notes == "Guard refitted"
        assert observation.closed_date is not None

        verification = db.query(Verification).filter(Verification.observation_id == observation.id).one()
        assert verification.status == VerificationDecision.APPROVED
        assert verification.verified_by == officer.id
        assert verification.remarks == "Guard refitted"

        rows = _log_rows(db, OBSERVATION_ENTITY, observation.id)
        assert [(r.previous_status, r.new_status, r.changed_by) for r in rows] == [
            ("Open", "Closed", officer.id)
        ]

        assert reporter.points == 5
        history = db.query(PointsHistory).filter(PointsHistory.user_id == reporter.id).one()
        assert history.reason == "Observation verified and closed"

    def test_verifier_does_not_earn_points(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        approve_observation(db, observation.id, officer, "ok")

        db.expire_all()
        assert officer.points == 0

    def test_missing_reporter_still_closes(self, db: Session, officer, make_observation) -> None:
        observation = make_observation(reported_by_id="GHOST", corrective_action_status=COMPLETED)

        outcome = approve_observation(db, observation.id, officer, "Closed out")

        assert outcome.points_awarded is False
        db.expire_all()
        assert observation.status == ObservationStatus.CLOSED
        assert db.query(PointsHistory).count() == 0

    @pytest.mark.parametrize("remarks", [None, "", "   "])
    def test_blank_remarks(self, db: Session, reporter, officer, make_observation, remarks) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        with pytest.raises(ValidationError) as excinfo:
            approve_observation(db, observation.id, officer, remarks)

        assert excinfo.value.status_code == 400
        db.expire_all()
        assert observation.status == ObservationStatus.OPEN
        assert db.query(Verification).count() == 0

    def test_self_verification_forbidden(self, db: Session, make_user, make_observation) -> None:
        officer = make_user(name="Self Checker", employee_id="E300", role=UserRole.SAFETY_OFFICER)
        observation = make_observation(reporter=officer, corrective_action_status=COMPLETED)

        with pytest.raises(AuthorizationError):
            approve_observation(db, observation.id, officer, "Looks fine to me")

        db.expire_all()
        assert observation.status == ObservationStatus.OPEN
        assert db.query(Verification).count() == 0
        assert db.query(StatusLog).count() == 0

    def test_already_closed(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(
            reporter=reporter, status=ObservationStatus.CLOSED, corrective_action_status=COMPLETED
        )

        with pytest.raises(StateTransitionError) as excinfo:
            approve_observation(db, observation.id, officer, "again")

        assert excinfo.value.status_code == 409

    def test_unknown_observation(self, db: Session, officer) -> None:
        with pytest.raises(NotFoundError):
            approve_observation(db, 12345, officer, "remarks")


class TestRejectObservation:
    """Rejection sends the corrective action back to In Progress."""

    def test_reject_returns_for_rework(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        outcome = reject_observation(db, observation.id, officer, "Guard missing a bolt")

        assert outcome.points_awarded is False
        db.expire_all()
        assert observation.status == ObservationStatus.OPEN
        assert observation.corrective_action_status == IN_PROGRESS
        assert count_pending_verifications(db) == 0

        rows = _log_rows(db, OBSERVATION_ENTITY, observation.id)
        assert [(r.previous_status, r.new_status) for r in rows] == [("Open", REJECTED_STATUS_TEXT)]
        assert rows[0].remarks == "Guard missing a bolt"
        assert reporter.points == 0

    def test_reject_then_approve_history(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        reject_observation(db, observation.id, officer, "Not done")
        update_corrective_action(db, observation.id, reporter, COMPLETED)
        approve_observation(db, observation.id, officer, "Done now")

        history = verification_history(db, observation.id)
        assert [v.status for v, _ in history] == [
            VerificationDecision.APPROVED,
            VerificationDecision.REJECTED,
        ]
        assert all(name == "Omar Officer" for _, name in history)

    def test_blank_remarks(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        with pytest.raises(ValidationError):
            reject_observation(db, observation.id, officer, " ")

        db.expire_all()
        assert observation.corrective_action_status == COMPLETED

    def test_closed_observation(self, db: Session, reporter, officer, make_observation) -> None:
        observation = make_observation(
            reporter=reporter, status=ObservationStatus.CLOSED, corrective_action_status=COMPLETED
        )

        with pytest.raises(StateTransitionError):
            reject_observation(db, observation.id, officer, "too late")


class TestApproveAtomicity:
    """A failure part way through approval leaves nothing behind."""

    def _assert_untouched(self, db: Session, observation, reporter) -> None:
        db.expire_all()
        assert db.query(Verification).count() == 0
        assert db.query(StatusLog).count() == 0
        assert db.query(PointsHistory).count() == 0
        assert observation.status == ObservationStatus.OPEN
        assert observation.closed_by is None
        assert reporter.points == 0

    def test_database_error_rolls_back(
        self, db: Session, reporter, officer, make_observation, monkeypatch
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        def failing_award(*args, **kwargs):
            raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

        monkeypatch.setattr(workflow, "award_points", failing_award)

        with pytest.raises(StorageError) as excinfo:
            approve_observation(db, observation.id, officer, "Barrier installed")

        assert isinstance(excinfo.value.__cause__, OperationalError)
        self._assert_untouched(db, observation, reporter)

    def test_other_errors_propagate_unchanged(
        self, db: Session, reporter, officer, make_observation, monkeypatch
    ) -> None:
        observation = make_observation(reporter=reporter, corrective_action_status=COMPLETED)

        def failing_award(*args, **kwargs):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(workflow, "award_points", failing_award)

        with pytest.raises(RuntimeError, match="ledger unavailable"):
            approve_observation(db, observation.id, officer, "Barrier installed")

        self._assert_untouched(db, observation, reporter)
