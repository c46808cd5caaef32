from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..db import get_db
from ..models.audit import StatusLog
from ..models.user import User
from ..schemas.observation import PendingVerificationResponse
from ..schemas.verification import (
    PendingCount,
    StatusLogResponse,
    VerificationActionResponse,
    VerificationRequest,
    VerificationResponse,
)
from ..api.auth import get_current_user, require_verifier
from ..core.workflow import (
    approve_observation,
    count_pending_verifications,
    list_pending_verifications,
    reject_observation,
    verification_history,
)

router = APIRouter()


@router.get("/verifications/pending", response_model=List[PendingVerificationResponse])
def get_pending_verifications(
    current_user: User = Depends(require_verifier),
    db: Session = Depends(get_db)
):
    """Observations whose corrective action is done and that still wait for a verifier"""
    response = []
    for observation, reporter_name in list_pending_verifications(db):
        item = PendingVerificationResponse.model_validate(observation)
        item.reported_by_name = reporter_name
        response.append(item)
    return response


@router.get("/verifications/pending/count", response_model=PendingCount)
def get_pending_verification_count(
    current_user: User = Depends(require_verifier),
    db: Session = Depends(get_db)
):
    return {"count": count_pending_verifications(db)}


@router.post("/verifications/{observation_id}/approve", response_model=VerificationActionResponse)
def approve_verification(
    observation_id: int,
    payload: Optional[VerificationRequest] = None,
    current_user: User = Depends(require_verifier),
    db: Session = Depends(get_db)
):
    """Approve the corrective action and close the observation"""
    outcome = approve_observation(db, observation_id, current_user, payload.remarks if payload else None)
    return {
        "success": True,
        "message": "Observation approved and closed successfully",
        "points_awarded": outcome.points_awarded,
    }


@router.post("/verifications/{observation_id}/reject", response_model=VerificationActionResponse)
def reject_verification(
    observation_id: int,
    payload: Optional[VerificationRequest] = None,
    current_user: User = Depends(require_verifier),
    db: Session = Depends(get_db)
):
    """Return the observation for further corrective work"""
    reject_observation(db, observation_id, current_user, payload.remarks if payload else None)
    return {"success": True, "message": "Observation rejected and returned for correction"}


@router.get("/verifications/history/{observation_id}", response_model=List[VerificationResponse])
def get_verification_history(
    observation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    response = []
    for verification, verifier_name in verification_history(db, observation_id):
        item = VerificationResponse.model_validate(verification)
        item.verifier_name = verifier_name
        response.append(item)
    return response


@router.get("/status-log/{entity_type}/{entity_id}", response_model=List[StatusLogResponse])
def get_status_log(
    entity_type: str,
    entity_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Status transitions of one entity, oldest first"""
    rows = (
        db.query(StatusLog, User.name)
        .outerjoin(User, User.id == StatusLog.changed_by)
        .filter(StatusLog.entity_type == entity_type, StatusLog.entity_id == entity_id)
        .order_by(StatusLog.id.asc())
        .all()
    )
    response = []
    for entry, actor_name in rows:
        item = StatusLogResponse.model_validate(entry)
        item.actor_name = actor_name
        response.append(item)
    return response
