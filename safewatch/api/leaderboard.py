from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..db import get_db
from ..models.points import PointsHistory
from ..models.user import User
from ..schemas.points import LeaderboardEntry, PointsHistoryResponse
from ..api.auth import get_current_user
from ..core.config import settings

router = APIRouter()


def _start_of_month() -> str:
    # Ledger timestamps are stored as naive UTC text, second precision
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-01 00:00:00")


def _monthly_ranking(db: Session):
    monthly_points = func.coalesce(func.sum(PointsHistory.points), 0).label("monthly_points")
    return (
        db.query(User, monthly_points)
        .outerjoin(
            PointsHistory,
            (PointsHistory.user_id == User.id)
            & (func.datetime(PointsHistory.created_at) >= _start_of_month()),
        )
        .filter(User.approved.is_(True))
        .group_by(User.id)
        .order_by(monthly_points.desc(), User.points.desc(), User.id.asc())
    )


def _entry(user: User, monthly: Optional[int] = None) -> dict:
    return {
        "id": user.id,
        "employee_id": user.employee_id,
        "name": user.name,
        "points": user.points,
        "level": user.level,
        "monthly_points": monthly,
    }


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def leaderboard(period: str = "all", db: Session = Depends(get_db)):
    """Approved users ranked by total points, or by points earned this month"""
    if period == "month":
        rows = _monthly_ranking(db).limit(settings.leaderboard_limit).all()
        return [_entry(user, monthly) for user, monthly in rows]

    users = (
        db.query(User)
        .filter(User.approved.is_(True))
        .order_by(User.points.desc(), User.id.asc())
        .limit(settings.leaderboard_limit)
        .all()
    )
    return [_entry(user) for user in users]


@router.get("/employee-of-month", response_model=Optional[LeaderboardEntry])
def employee_of_month(db: Session = Depends(get_db)):
    row = _monthly_ranking(db).first()
    if row is None:
        return None
    user, monthly = row
    return _entry(user, monthly)


@router.get("/points/history", response_model=List[PointsHistoryResponse])
def my_points_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        db.query(PointsHistory)
        .filter(PointsHistory.user_id == current_user.id)
        .order_by(PointsHistory.created_at.desc(), PointsHistory.id.desc())
        .all()
    )
