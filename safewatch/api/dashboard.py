from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..db import get_db
from ..models.area import Area
from ..models.equipment import Equipment
from ..models.observation import Observation, ObservationStatus
from ..models.permit import Permit, PermitStatus
from ..models.toolbox_talk import ToolboxTalk

router = APIRouter()


@router.get("/areas", response_model=List[str])
def list_areas(db: Session = Depends(get_db)):
    return [name for (name,) in db.query(Area.name).order_by(Area.name.asc()).all()]


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    """Totals for the dashboard cards"""
    observations = db.query(Observation)
    permits = db.query(Permit)
    return {
        "observations": {
            "total": observations.count(),
            "open": observations.filter(Observation.status == ObservationStatus.OPEN).count(),
            "closed": observations.filter(Observation.status == ObservationStatus.CLOSED).count(),
        },
        "permits": {
            "total": permits.count(),
            "active": permits.filter(Permit.status == PermitStatus.ACTIVE).count(),
        },
        "toolbox_talks": {"total": db.query(ToolboxTalk).count()},
        "equipment": {"total": db.query(Equipment).count()},
    }
