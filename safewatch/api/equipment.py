from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.equipment import Equipment
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.equipment import EquipmentCreate, EquipmentResponse
from ..api.auth import get_current_user, get_optional_user, require_admin
from ..core.queries import filter_search

router = APIRouter()


def _get_equipment_or_404(db: Session, equipment_id: int) -> Equipment:
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return equipment


@router.get("", response_model=List[EquipmentResponse])
def list_equipment(
    area: Optional[str] = None,
    equipment_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    query = db.query(Equipment)
    if area:
        query = query.filter(Equipment.yard_area == area)
    if equipment_status:
        query = query.filter(Equipment.status == equipment_status)
    query = filter_search(
        query, search,
        Equipment.asset_number, Equipment.equipment_type, Equipment.owner, Equipment.yard_area,
    )
    return query.order_by(Equipment.created_at.desc(), Equipment.id.desc()).all()


@router.post("", response_model=EquipmentResponse)
def create_equipment(
    payload: EquipmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    equipment = Equipment(**payload.model_dump())
    with unit_of_work(db):
        db.add(equipment)
    db.refresh(equipment)
    return equipment


@router.get("/{equipment_id}", response_model=EquipmentResponse)
def get_equipment(
    equipment_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return _get_equipment_or_404(db, equipment_id)


@router.delete("/{equipment_id}", response_model=MessageResponse)
def delete_equipment(
    equipment_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    equipment = _get_equipment_or_404(db, equipment_id)
    with unit_of_work(db):
        db.delete(equipment)
    return {"success": True, "message": "Equipment deleted successfully"}
