"""Observation lifecycle: corrective-action tracking and verification.

An observation starts ``Open`` with corrective action ``Not Started``.
Once the corrective action is ``Completed`` it waits for a verifier, who
either approves it (observation ``Closed``, reporter rewarded) or rejects
it (corrective action back to ``In Progress``). Each operation here runs
in a single unit of work.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..db import unit_of_work
from ..models.observation import (
    CorrectiveActionStatus,
    Observation,
    ObservationStatus,
    Verification,
    VerificationDecision,
)
from ..models.user import User
from .audit import CORRECTIVE_ACTION_ENTITY, OBSERVATION_ENTITY, record_status_change
from .errors import AuthorizationError, NotFoundError, StateTransitionError, ValidationError
from .points import OBSERVATION_VERIFIED_POINTS, award_points

logger = logging.getLogger(__name__)

REJECTED_STATUS_TEXT = "Rejected - Returned for Correction"

# Self-transitions are always allowed so due date and assignee can be edited.
CORRECTIVE_ACTION_TRANSITIONS = {
    CorrectiveActionStatus.NOT_STARTED: {
        CorrectiveActionStatus.IN_PROGRESS,
        CorrectiveActionStatus.COMPLETED,
    },
    CorrectiveActionStatus.IN_PROGRESS: {CorrectiveActionStatus.COMPLETED},
    CorrectiveActionStatus.COMPLETED: {CorrectiveActionStatus.IN_PROGRESS},
}


@dataclass
class VerificationOutcome:
    observation: Observation
    verification: Verification
    points_awarded: bool = False


def can_transition(current: CorrectiveActionStatus, target: CorrectiveActionStatus) -> bool:
    return current == target or target in CORRECTIVE_ACTION_TRANSITIONS.get(current, set())


def get_observation(db: Session, observation_id: int) -> Observation:
    observation = db.query(Observation).filter(Observation.id == observation_id).first()
    if observation is None:
        raise NotFoundError("Observation not found")
    return observation


def update_corrective_action(
    db: Session,
    observation_id: int,
    actor: User,
    status: CorrectiveActionStatus,
    due_date: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> Observation:
    """Set the corrective-action status, due date and assignee."""
    observation = get_observation(db, observation_id)

    if observation.status == ObservationStatus.CLOSED:
        raise StateTransitionError("Observation is closed; corrective action can no longer change")

    current = observation.corrective_action_status
    if not can_transition(current, status):
        raise StateTransitionError(
            f"Corrective action cannot move from {current.value} to {status.value}"
        )

    with unit_of_work(db):
        observation.corrective_action_status = status
        observation.corrective_action_due_date = due_date
        observation.corrective_action_assigned_to = assigned_to
        if current != status:
            record_status_change(
                db,
                CORRECTIVE_ACTION_ENTITY,
                observation.id,
                current,
                status,
                actor.id,
                remarks=f"Assigned to {assigned_to}" if assigned_to else None,
            )

    if current != status:
        logger.info(
            "Observation %s corrective action %s -> %s by user %s",
            observation.id, current.value, status.value, actor.id,
        )
    db.refresh(observation)
    return observation


def _check_verification_request(
    db: Session, observation_id: int, verifier: User, remarks: Optional[str]
) -> Tuple[Observation, str]:
    cleaned = (remarks or "").strip()
    if not cleaned:
        raise ValidationError("Remarks are required for verification")

    observation = get_observation(db, observation_id)

    if observation.reported_by_id and observation.reported_by_id == verifier.employee_id:
        raise AuthorizationError("You cannot verify your own observation")

    if observation.status == ObservationStatus.CLOSED:
        raise StateTransitionError("Observation is already closed")

    return observation, cleaned


def approve_observation(
    db: Session, observation_id: int, verifier: User, remarks: Optional[str]
) -> VerificationOutcome:
    """Close an observation and reward its reporter."""
    observation, cleaned = _check_verification_request(db, observation_id, verifier, remarks)
    previous_status = observation.status
    points_awarded = False

    with unit_of_work(db):
        verification = Verification(
            observation_id=observation.id,
            verified_by=verifier.id,
            remarks=cleaned,
            status=VerificationDecision.APPROVED,
        )
        db.add(verification)

        observation.status = ObservationStatus.CLOSED
        observation.closed_by = verifier.name
        observation.closed_date = datetime.now(timezone.utc)
        observation.closed_notes = cleaned

        record_status_change(
            db, OBSERVATION_ENTITY, observation.id,
            previous_status, ObservationStatus.CLOSED, verifier.id, cleaned,
        )

        reporter = None
        if observation.reported_by_id:
            reporter = db.query(User).filter(User.employee_id == observation.reported_by_id).first()
        if reporter is not None:
            award_points(db, reporter.id, OBSERVATION_VERIFIED_POINTS, "Observation verified and closed")
            points_awarded = True
        else:
            logger.warning(
                "Observation %s approved but reporter %r has no user record; no points awarded",
                observation.id, observation.reported_by_id,
            )

    logger.info("Observation %s approved and closed by user %s", observation.id, verifier.id)
    return VerificationOutcome(observation, verification, points_awarded)


def reject_observation(
    db: Session, observation_id: int, verifier: User, remarks: Optional[str]
) -> VerificationOutcome:
    """Send an observation's corrective action back for rework."""
    observation, cleaned = _check_verification_request(db, observation_id, verifier, remarks)
    previous_status = observation.status

    with unit_of_work(db):
        verification = Verification(
            observation_id=observation.id,
            verified_by=verifier.id,
            remarks=cleaned,
            status=VerificationDecision.REJECTED,
        )
        db.add(verification)

        observation.status = ObservationStatus.OPEN
        observation.corrective_action_status = CorrectiveActionStatus.IN_PROGRESS

        record_status_change(
            db, OBSERVATION_ENTITY, observation.id,
            previous_status, REJECTED_STATUS_TEXT, verifier.id, cleaned,
        )

    logger.info("Observation %s rejected by user %s", observation.id, verifier.id)
    return VerificationOutcome(observation, verification)


def pending_verifications_query(db: Session):
    return db.query(Observation).filter(
        Observation.corrective_action_status == CorrectiveActionStatus.COMPLETED,
        Observation.status != ObservationStatus.CLOSED,
    )


def list_pending_verifications(db: Session) -> List[Tuple[Observation, Optional[str]]]:
    """Observations awaiting a verifier, newest first, with the reporter's user name."""
    rows = (
        pending_verifications_query(db)
        .outerjoin(User, User.employee_id == Observation.reported_by_id)
        .add_columns(User.name)
        .order_by(Observation.created_at.desc(), Observation.id.desc())
        .all()
    )
    return [(observation, reporter_name) for observation, reporter_name in rows]


def count_pending_verifications(db: Session) -> int:
    return pending_verifications_query(db).count()


def verification_history(db: Session, observation_id: int) -> List[Tuple[Verification, Optional[str]]]:
    """Every decision on the observation, newest first, with the verifier's name."""
    rows = (
        db.query(Verification, User.name)
        .outerjoin(User, User.id == Verification.verified_by)
        .filter(Verification.observation_id == observation_id)
        .order_by(Verification.verified_at.desc(), Verification.id.desc())
        .all()
    )
    return [(verification, verifier_name) for verification, verifier_name in rows]
