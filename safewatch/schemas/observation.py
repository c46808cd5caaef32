from pydantic import AliasChoices, BaseModel, Field
from typing import List, Optional
from datetime import datetime
from ..models.observation import (
    CorrectiveActionStatus,
    ObservationClass,
    ObservationStatus,
    RiskLevel,
)
from .common import JsonList


class ObservationCreate(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
    area: Optional[str] = None
    location: Optional[str] = None
    observation_type: Optional[str] = None
    observation_class: ObservationClass = ObservationClass.NEGATIVE
    activity_type: Optional[str] = None
    injury_type: Optional[str] = None
    injury_body_part: Optional[str] = None
    description: str = Field(..., min_length=1)
    direct_cause: Optional[str] = None
    root_cause: Optional[str] = None
    immediate_action: Optional[str] = None
    corrective_action: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.MEDIUM
    evidence_urls: List[str] = []


class ObservationResponse(BaseModel):
    id: int
    date: str
    time: Optional[str] = None
    area: Optional[str] = None
    location: Optional[str] = None
    observation_type: Optional[str] = None
    observation_class: ObservationClass
    activity_type: Optional[str] = None
    injury_type: Optional[str] = None
    injury_body_part: Optional[str] = None
    description: str
    direct_cause: Optional[str] = None
    root_cause: Optional[str] = None
    immediate_action: Optional[str] = None
    corrective_action: Optional[str] = None
    corrective_action_status: CorrectiveActionStatus
    corrective_action_due_date: Optional[str] = None
    corrective_action_assigned_to: Optional[str] = None
    risk_level: RiskLevel
    status: ObservationStatus
    reported_by: Optional[str] = None
    reported_by_id: Optional[str] = None
    closed_by: Optional[str] = None
    closed_date: Optional[datetime] = None
    closed_notes: Optional[str] = None
    evidence_urls: JsonList = []
    close_evidence_urls: JsonList = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingVerificationResponse(ObservationResponse):
    reported_by_name: Optional[str] = None


class CorrectiveActionUpdate(BaseModel):
    """Omitting ``status`` keeps the current corrective-action status."""
    status: Optional[CorrectiveActionStatus] = Field(
        None, validation_alias=AliasChoices("status", "corrective_action_status")
    )
    due_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("due_date", "corrective_action_due_date")
    )
    assigned_to: Optional[str] = Field(
        None, validation_alias=AliasChoices("assigned_to", "corrective_action_assigned_to")
    )


class ObservationStats(BaseModel):
    total: int
    open: int
    closed: int
    pending_verification: int
    by_risk_level: dict
