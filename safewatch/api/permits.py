import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.permit import Permit, PermitStatus
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.permit import PermitClose, PermitCreate, PermitResponse
from ..api.auth import get_current_user, get_optional_user, require_admin
from ..core.audit import PERMIT_ENTITY, record_status_change
from ..core.errors import StateTransitionError
from ..core.points import PERMIT_CLOSED_POINTS, PERMIT_CREATED_POINTS, award_points
from ..core.queries import filter_date_range, filter_search, today_iso

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_permit_or_404(db: Session, permit_id: int) -> Permit:
    permit = db.query(Permit).filter(Permit.id == permit_id).first()
    if not permit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Permit not found")
    return permit


@router.get("", response_model=List[PermitResponse])
def list_permits(
    date_range: Optional[str] = Query(None, alias="range"),
    area: Optional[str] = None,
    permit_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    query = filter_date_range(db.query(Permit), Permit.date, date_range)
    if area:
        query = query.filter(Permit.area == area)
    if permit_type:
        query = query.filter(Permit.permit_type == permit_type)
    query = filter_search(
        query, search,
        Permit.area, Permit.permit_type, Permit.receiver, Permit.project, Permit.permit_number,
    )
    return query.order_by(Permit.date.desc(), Permit.id.desc()).all()


@router.post("", response_model=PermitResponse)
def create_permit(
    payload: PermitCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    data = payload.model_dump(exclude={"evidence_urls"})
    data["date"] = payload.date or today_iso()
    permit = Permit(
        **data,
        status=PermitStatus.ACTIVE,
        created_by=current_user.name,
        evidence_urls=json.dumps(payload.evidence_urls),
    )
    with unit_of_work(db):
        db.add(permit)
        db.flush()
        award_points(db, current_user.id, PERMIT_CREATED_POINTS, "Added permit")
    db.refresh(permit)
    return permit


@router.put("/{permit_id}/close", response_model=PermitResponse)
def close_permit(
    permit_id: int,
    payload: Optional[PermitClose] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    permit = _get_permit_or_404(db, permit_id)
    if permit.status == PermitStatus.CLOSED:
        raise StateTransitionError("Permit is already closed")

    notes = payload.closed_notes if payload else None
    with unit_of_work(db):
        permit.status = PermitStatus.CLOSED
        permit.closed_by = current_user.name
        permit.closed_date = datetime.now(timezone.utc)
        permit.closed_notes = notes
        record_status_change(
            db, PERMIT_ENTITY, permit.id,
            PermitStatus.ACTIVE, PermitStatus.CLOSED, current_user.id, notes,
        )
        award_points(db, current_user.id, PERMIT_CLOSED_POINTS, "Closed permit")
    logger.info("Permit %s closed by user %s", permit.id, current_user.id)
    db.refresh(permit)
    return permit


@router.get("/{permit_id}", response_model=PermitResponse)
def get_permit(
    permit_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return _get_permit_or_404(db, permit_id)


@router.delete("/{permit_id}", response_model=MessageResponse)
def delete_permit(
    permit_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    permit = _get_permit_or_404(db, permit_id)
    with unit_of_work(db):
        db.delete(permit)
    return {"success": True, "message": "Permit deleted"}
