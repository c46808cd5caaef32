from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from ..models.permit import PermitStatus
from .common import JsonList


class PermitCreate(BaseModel):
    date: Optional[str] = None
    area: Optional[str] = None
    permit_type: Optional[str] = None
    permit_number: Optional[str] = None
    project: Optional[str] = None
    receiver: Optional[str] = None
    issuer: Optional[str] = None
    description: Optional[str] = None
    evidence_urls: List[str] = []


class PermitClose(BaseModel):
    closed_notes: Optional[str] = None


class PermitResponse(BaseModel):
    id: int
    date: str
    area: Optional[str] = None
    permit_type: Optional[str] = None
    permit_number: Optional[str] = None
    project: Optional[str] = None
    receiver: Optional[str] = None
    issuer: Optional[str] = None
    description: Optional[str] = None
    status: PermitStatus
    created_by: Optional[str] = None
    closed_by: Optional[str] = None
    closed_date: Optional[datetime] = None
    closed_notes: Optional[str] = None
    evidence_urls: JsonList = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
