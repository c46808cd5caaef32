from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from ..core.training import DEFAULT_VALIDITY_YEARS


class TrainingRoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TrainingRoleResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrainingItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    validity_years: int = Field(DEFAULT_VALIDITY_YEARS, ge=1)


class TrainingItemResponse(BaseModel):
    id: int
    name: str
    validity_years: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleTrainingAssignment(BaseModel):
    id: int
    name: str
    validity_years: int
    assigned: bool


class RoleTrainingUpdate(BaseModel):
    training_ids: List[int] = []
