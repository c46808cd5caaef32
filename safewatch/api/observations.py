import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.user import User
from ..models.observation import CorrectiveActionStatus, Observation, ObservationStatus, RiskLevel
from ..models.audit import StatusLog
from ..schemas.common import MessageResponse
from ..schemas.observation import (
    CorrectiveActionUpdate,
    ObservationCreate,
    ObservationResponse,
    ObservationStats,
)
from ..api.auth import get_current_user, get_optional_user, require_admin
from ..core.audit import CORRECTIVE_ACTION_ENTITY, OBSERVATION_ENTITY
from ..core.points import OBSERVATION_CREATED_POINTS, award_points
from ..core.queries import filter_date_range, filter_search
from ..core.workflow import count_pending_verifications, get_observation, update_corrective_action

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", response_model=ObservationStats)
def observation_stats(db: Session = Depends(get_db)):
    """Counts by status and risk level"""
    by_status = dict(
        db.query(Observation.status, func.count(Observation.id))
        .group_by(Observation.status)
        .all()
    )
    by_risk = dict(
        db.query(Observation.risk_level, func.count(Observation.id))
        .group_by(Observation.risk_level)
        .all()
    )
    return {
        "total": sum(by_status.values()),
        "open": by_status.get(ObservationStatus.OPEN, 0),
        "closed": by_status.get(ObservationStatus.CLOSED, 0),
        "pending_verification": count_pending_verifications(db),
        "by_risk_level": {level.value: by_risk.get(level, 0) for level in RiskLevel},
    }


@router.get("", response_model=List[ObservationResponse])
def list_observations(
    date_range: Optional[str] = Query(None, alias="range"),
    area: Optional[str] = None,
    status: Optional[ObservationStatus] = None,
    search: Optional[str] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """List observations, newest first"""
    query = db.query(Observation)
    query = filter_date_range(query, Observation.date, date_range)
    if area:
        query = query.filter(Observation.area == area)
    if status:
        query = query.filter(Observation.status == status)
    query = filter_search(
        query, search,
        Observation.location, Observation.description, Observation.reported_by, Observation.area,
    )
    return query.order_by(Observation.date.desc(), Observation.time.desc(), Observation.id.desc()).all()


@router.post("", response_model=ObservationResponse)
def create_observation(
    payload: ObservationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Report an observation; the reporter earns points for it"""
    now = datetime.now()
    data = payload.model_dump(exclude={"evidence_urls"})
    data["date"] = payload.date or now.date().isoformat()
    data["time"] = payload.time or now.strftime("%H:%M:%S")

    observation = Observation(
        **data,
        status=ObservationStatus.OPEN,
        corrective_action_status=CorrectiveActionStatus.NOT_STARTED,
        reported_by=current_user.name,
        reported_by_id=current_user.employee_id,
        evidence_urls=json.dumps(payload.evidence_urls),
        close_evidence_urls="[]",
    )

    with unit_of_work(db):
        db.add(observation)
        db.flush()
        award_points(db, current_user.id, OBSERVATION_CREATED_POINTS, "Added observation")

    db.refresh(observation)
    logger.info("Observation %s reported by %s", observation.id, current_user.employee_id)
    return observation


@router.get("/{observation_id}", response_model=ObservationResponse)
def get_observation_detail(
    observation_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return get_observation(db, observation_id)


@router.put("/{observation_id}/corrective-action", response_model=ObservationResponse)
def update_observation_corrective_action(
    observation_id: int,
    payload: CorrectiveActionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Assign and track the corrective action"""
    observation = get_observation(db, observation_id)
    # Omitted fields keep their stored values
    return update_corrective_action(
        db,
        observation_id,
        current_user,
        payload.status or observation.corrective_action_status,
        due_date=payload.due_date if payload.due_date is not None else observation.corrective_action_due_date,
        assigned_to=(
            payload.assigned_to if payload.assigned_to is not None
            else observation.corrective_action_assigned_to
        ),
    )


@router.delete("/{observation_id}", response_model=MessageResponse)
def delete_observation(
    observation_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete an observation with its verifications and status log (admin only)"""
    observation = get_observation(db, observation_id)
    with unit_of_work(db):
        db.query(StatusLog).filter(
            StatusLog.entity_type.in_([OBSERVATION_ENTITY, CORRECTIVE_ACTION_ENTITY]),
            StatusLog.entity_id == observation.id,
        ).delete(synchronize_session=False)
        db.delete(observation)
    logger.info("Observation %s deleted by admin %s", observation_id, current_user.id)
    return {"success": True, "message": "Observation deleted"}
