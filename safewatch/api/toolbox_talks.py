import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.toolbox_talk import ToolboxTalk
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.toolbox_talk import ToolboxTalkCreate, ToolboxTalkResponse
from ..api.auth import get_current_user, get_optional_user, require_admin
from ..core.points import TOOLBOX_TALK_CREATED_POINTS, award_points
from ..core.queries import filter_date_range, filter_search, today_iso

router = APIRouter()


def _get_talk_or_404(db: Session, talk_id: int) -> ToolboxTalk:
    talk = db.query(ToolboxTalk).filter(ToolboxTalk.id == talk_id).first()
    if not talk:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Toolbox talk not found")
    return talk


@router.get("", response_model=List[ToolboxTalkResponse])
def list_toolbox_talks(
    date_range: Optional[str] = Query(None, alias="range"),
    area: Optional[str] = None,
    search: Optional[str] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    query = filter_date_range(db.query(ToolboxTalk), ToolboxTalk.date, date_range)
    if area:
        query = query.filter(ToolboxTalk.area == area)
    query = filter_search(query, search, ToolboxTalk.topic, ToolboxTalk.presenter, ToolboxTalk.area)
    return query.order_by(ToolboxTalk.date.desc(), ToolboxTalk.id.desc()).all()


@router.post("", response_model=ToolboxTalkResponse)
def create_toolbox_talk(
    payload: ToolboxTalkCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    data = payload.model_dump(exclude={"evidence_urls"})
    data["date"] = payload.date or today_iso()
    talk = ToolboxTalk(
        **data,
        status="Completed",
        created_by=current_user.name,
        evidence_urls=json.dumps(payload.evidence_urls),
    )
    with unit_of_work(db):
        db.add(talk)
        db.flush()
        award_points(db, current_user.id, TOOLBOX_TALK_CREATED_POINTS, "Added toolbox talk")
    db.refresh(talk)
    return talk


@router.get("/of-the-day", response_model=Optional[ToolboxTalkResponse])
def get_toolbox_talk_of_the_day(db: Session = Depends(get_db)):
    """Today's featured talk, falling back to the most recent one"""
    talk = db.query(ToolboxTalk).filter(
        ToolboxTalk.is_tbt_of_day.is_(True),
        ToolboxTalk.date == today_iso(),
    ).first()
    if talk is None:
        talk = db.query(ToolboxTalk).order_by(ToolboxTalk.date.desc(), ToolboxTalk.id.desc()).first()
    return talk


@router.put("/{talk_id}/set-tbt-of-day", response_model=ToolboxTalkResponse)
def set_toolbox_talk_of_the_day(
    talk_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    talk = _get_talk_or_404(db, talk_id)
    today = today_iso()
    with unit_of_work(db):
        db.query(ToolboxTalk).filter(ToolboxTalk.date == today).update(
            {ToolboxTalk.is_tbt_of_day: False}, synchronize_session=False
        )
        talk.is_tbt_of_day = True
        talk.date = today
    db.refresh(talk)
    return talk


@router.get("/{talk_id}", response_model=ToolboxTalkResponse)
def get_toolbox_talk(
    talk_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return _get_talk_or_404(db, talk_id)


@router.delete("/{talk_id}", response_model=MessageResponse)
def delete_toolbox_talk(
    talk_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    talk = _get_talk_or_404(db, talk_id)
    with unit_of_work(db):
        db.delete(talk)
    return {"success": True, "message": "Toolbox talk deleted successfully"}
