import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.training import TrainingItem, TrainingRole
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.training import (
    RoleTrainingAssignment,
    RoleTrainingUpdate,
    TrainingItemCreate,
    TrainingItemResponse,
    TrainingRoleCreate,
    TrainingRoleResponse,
)
from ..api.auth import get_optional_user, require_admin
from ..core.training import role_assignment_grid, role_trainings, set_role_trainings

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_role_or_404(db: Session, role_id: int) -> TrainingRole:
    role = db.query(TrainingRole).filter(TrainingRole.id == role_id).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Training role not found")
    return role


def _get_item_or_404(db: Session, item_id: int) -> TrainingItem:
    item = db.query(TrainingItem).filter(TrainingItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Training not found")
    return item


def _ensure_unique_name(db: Session, model, name: str, detail: str, exclude_id: Optional[int] = None):
    query = db.query(model).filter(model.name == name)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.get("/training-roles", response_model=List[TrainingRoleResponse])
def list_training_roles(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return db.query(TrainingRole).order_by(TrainingRole.name).all()


@router.get("/training-items", response_model=List[TrainingItemResponse])
def list_training_items(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return db.query(TrainingItem).order_by(TrainingItem.name).all()


@router.get("/training-roles/{role_id}/trainings", response_model=List[TrainingItemResponse])
def trainings_for_role(
    role_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Trainings a role must hold"""
    return role_trainings(db, role_id)


@router.post("/training-roles", response_model=TrainingRoleResponse)
def create_training_role(
    payload: TrainingRoleCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    name = payload.name.strip()
    _ensure_unique_name(db, TrainingRole, name, "Role already exists")
    role = TrainingRole(name=name)
    with unit_of_work(db):
        db.add(role)
    db.refresh(role)
    return role


@router.put("/training-roles/{role_id}", response_model=TrainingRoleResponse)
def rename_training_role(
    role_id: int,
    payload: TrainingRoleCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    role = _get_role_or_404(db, role_id)
    name = payload.name.strip()
    _ensure_unique_name(db, TrainingRole, name, "Role already exists", exclude_id=role.id)
    with unit_of_work(db):
        role.name = name
    db.refresh(role)
    return role


@router.delete("/training-roles/{role_id}", response_model=MessageResponse)
def delete_training_role(
    role_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    role = _get_role_or_404(db, role_id)
    with unit_of_work(db):
        db.delete(role)
    logger.info("Training role %s deleted by user %s", role_id, current_user.id)
    return {"success": True, "message": "Training role deleted"}


@router.post("/training-items", response_model=TrainingItemResponse)
def create_training_item(
    payload: TrainingItemCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    name = payload.name.strip()
    _ensure_unique_name(db, TrainingItem, name, "Training already exists")
    item = TrainingItem(name=name, validity_years=payload.validity_years)
    with unit_of_work(db):
        db.add(item)
    db.refresh(item)
    return item


@router.put("/training-items/{item_id}", response_model=TrainingItemResponse)
def update_training_item(
    item_id: int,
    payload: TrainingItemCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    item = _get_item_or_404(db, item_id)
    name = payload.name.strip()
    _ensure_unique_name(db, TrainingItem, name, "Training already exists", exclude_id=item.id)
    with unit_of_work(db):
        item.name = name
        item.validity_years = payload.validity_years
    db.refresh(item)
    return item


@router.delete("/training-items/{item_id}", response_model=MessageResponse)
def delete_training_item(
    item_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    item = _get_item_or_404(db, item_id)
    with unit_of_work(db):
        db.delete(item)
    return {"success": True, "message": "Training deleted"}


@router.get("/role-trainings/{role_id}", response_model=List[RoleTrainingAssignment])
def role_training_grid(
    role_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Every training, flagged with whether the role requires it"""
    _get_role_or_404(db, role_id)
    return role_assignment_grid(db, role_id)


@router.put("/role-trainings/{role_id}", response_model=MessageResponse)
def update_role_trainings(
    role_id: int,
    payload: RoleTrainingUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    count = set_role_trainings(db, role_id, payload.training_ids)
    return {"success": True, "message": f"{count} trainings assigned"}
