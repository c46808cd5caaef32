from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.challenge import Challenge, ChallengeType
from ..models.user import User
from ..schemas.challenge import (
    ChallengeCompletionStatus,
    ChallengeCreate,
    ChallengeResponse,
    ChallengeSubmission,
    ChallengeSubmitResponse,
)
from ..api.auth import get_current_user, require_admin
from ..core.challenges import challenge_period, find_completion, submit_challenge

router = APIRouter()


@router.get("", response_model=List[ChallengeResponse])
def list_challenges(
    challenge_type: Optional[ChallengeType] = Query(None, alias="type"),
    db: Session = Depends(get_db)
):
    """Active challenges"""
    query = db.query(Challenge).filter(Challenge.is_active.is_(True))
    if challenge_type:
        query = query.filter(Challenge.challenge_type == challenge_type)
    return query.order_by(Challenge.created_at.desc(), Challenge.id.desc()).all()


@router.post("", response_model=ChallengeResponse)
def create_challenge(
    payload: ChallengeCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    challenge = Challenge(**payload.model_dump(), is_active=True)
    with unit_of_work(db):
        db.add(challenge)
    db.refresh(challenge)
    return challenge


@router.get("/my-completions", response_model=Dict[int, ChallengeCompletionStatus])
def my_challenge_completions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Completion state of every active challenge for the current period"""
    result = {}
    for challenge in db.query(Challenge).filter(Challenge.is_active.is_(True)).all():
        period_start, period_end = challenge_period(challenge.challenge_type)
        completion = find_completion(db, current_user.id, challenge.id, period_start)
        result[challenge.id] = {
            "challenge_id": challenge.id,
            "completed": completion is not None,
            "period_start": period_start,
            "period_end": period_end,
            "challenge_type": challenge.challenge_type,
            "submitted_at": completion.completed_at if completion else None,
        }
    return result


@router.post("/{challenge_id}/submit", response_model=ChallengeSubmitResponse)
def submit_challenge_completion(
    challenge_id: int,
    payload: ChallengeSubmission,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return submit_challenge(db, challenge_id, current_user, payload.evidence_urls, payload.comments)
