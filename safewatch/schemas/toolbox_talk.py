from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from .common import JsonList


class ToolboxTalkCreate(BaseModel):
    date: Optional[str] = None
    topic: str = Field(..., min_length=1)
    presenter: Optional[str] = None
    area: Optional[str] = None
    attendance: int = Field(0, ge=0)
    description: Optional[str] = None
    evidence_urls: List[str] = []


class ToolboxTalkResponse(BaseModel):
    id: int
    date: str
    topic: str
    presenter: Optional[str] = None
    area: Optional[str] = None
    attendance: int
    description: Optional[str] = None
    status: str
    is_tbt_of_day: bool
    evidence_urls: JsonList = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
