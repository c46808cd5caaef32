import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.user import User
from ..schemas.auth import PointsAdjustment, UserResponse, UserRoleUpdate
from ..schemas.common import MessageResponse
from ..api.auth import require_admin
from ..core.points import award_points

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/admin/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.get("/admin/users/pending", response_model=List[UserResponse])
def list_pending_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Self-registered accounts waiting for approval"""
    return (
        db.query(User)
        .filter(User.approved.is_(False))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


@router.put("/admin/users/{user_id}/approve", response_model=UserResponse)
def approve_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_user_or_404(db, user_id)
    with unit_of_work(db):
        user.approved = True
    db.refresh(user)
    logger.info("User %s approved by admin %s", user.employee_id, current_user.id)
    return user


@router.put("/admin/users/{user_id}/reject", response_model=MessageResponse)
def reject_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Discard a pending registration. Approved accounts are left alone."""
    user = _get_user_or_404(db, user_id)
    if user.approved:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only pending registrations can be rejected"
        )
    with unit_of_work(db):
        db.delete(user)
    return {"success": True, "message": "Registration rejected"}


@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_user_or_404(db, user_id)
    with unit_of_work(db):
        user.role = payload.role
    db.refresh(user)
    return user


@router.put("/users/{user_id}/points", response_model=UserResponse)
def adjust_user_points(
    user_id: int,
    payload: PointsAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Manual points adjustment; negative values deduct"""
    _get_user_or_404(db, user_id)
    with unit_of_work(db):
        user = award_points(db, user_id, payload.points, payload.reason or "Admin adjustment")
    db.refresh(user)
    return user


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account"
        )
    user = _get_user_or_404(db, user_id)
    name = user.name
    with unit_of_work(db):
        db.delete(user)
    return {"success": True, "message": f"User {name} has been deleted"}
