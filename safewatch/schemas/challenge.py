from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from ..models.challenge import ChallengeType


class ChallengeCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    points: int = Field(10, ge=0)
    badge_reward: Optional[str] = None
    challenge_type: ChallengeType = ChallengeType.DAILY
    photo_required: bool = True


class ChallengeResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    points: int
    badge_reward: Optional[str] = None
    challenge_type: ChallengeType
    photo_required: bool
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChallengeSubmission(BaseModel):
    evidence_urls: List[str] = []
    comments: Optional[str] = None


class ChallengePeriod(BaseModel):
    start: str
    end: str


class ChallengeSubmitResponse(BaseModel):
    success: bool
    points_earned: int
    badge_earned: Optional[str] = None
    period: ChallengePeriod


class ChallengeCompletionStatus(BaseModel):
    challenge_id: int
    completed: bool
    period_start: str
    period_end: str
    challenge_type: ChallengeType
    submitted_at: Optional[datetime] = None
