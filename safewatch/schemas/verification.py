from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from ..models.observation import VerificationDecision


class VerificationRequest(BaseModel):
    remarks: Optional[str] = None


class VerificationActionResponse(BaseModel):
    success: bool
    message: str
    points_awarded: Optional[bool] = None


class VerificationResponse(BaseModel):
    id: int
    observation_id: int
    verified_by: int
    verifier_name: Optional[str] = None
    remarks: str
    status: VerificationDecision
    verified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingCount(BaseModel):
    count: int


class StatusLogResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    changed_by: Optional[int] = None
    actor_name: Optional[str] = None
    changed_at: Optional[datetime] = None
    remarks: Optional[str] = None

    class Config:
        from_attributes = True
