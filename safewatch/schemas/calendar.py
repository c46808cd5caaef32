from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from ..models.calendar import EventStatus
from .common import JsonList

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class CalendarEventCreate(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    event_type: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    notes: str = ""
    assigned_to: str = ""
    attachments: List[str] = []


class CalendarEventUpdate(BaseModel):
    date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    event_type: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    attachments: Optional[List[str]] = None


class CalendarEventResponse(BaseModel):
    id: int
    date: str
    event_type: str
    title: str
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_by_id: Optional[int] = None
    assigned_to: Optional[str] = None
    attachments: JsonList = []
    status: EventStatus
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CalendarNotificationResponse(BaseModel):
    id: int
    event_id: Optional[int] = None
    message: str
    notification_type: str
    is_read: bool
    created_at: Optional[datetime] = None
    event_title: Optional[str] = None
    event_date: Optional[str] = None

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    notifications: List[CalendarNotificationResponse]
    unread_count: int


class CalendarCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = "#3b82f6"
    icon: str = "fa-calendar"


class CalendarCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class CalendarCategoryResponse(BaseModel):
    id: int
    name: str
    color: str
    icon: str
    is_active: bool
    sort_order: int

    class Config:
        from_attributes = True
