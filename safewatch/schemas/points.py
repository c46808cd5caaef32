from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class PointsHistoryResponse(BaseModel):
    id: int
    user_id: int
    points: int
    reason: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    id: int
    employee_id: str
    name: str
    points: int
    level: str
    monthly_points: Optional[int] = None
