from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from ..db import Base


class EventStatus(str, PyEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    COMPLETED = "Completed"


class CalendarEvent(Base):
    __tablename__ = "safety_calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), nullable=False, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    notes = Column(Text, default="", nullable=False)
    created_by = Column(String(100), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_to = Column(String(200), default="", nullable=False)
    attachments = Column(Text, default="[]", nullable=False)
    status = Column(Enum(EventStatus), default=EventStatus.PENDING, nullable=False, index=True)
    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    notifications = relationship(
        "CalendarNotification", back_populates="event", cascade="all, delete-orphan"
    )


class CalendarNotification(Base):
    __tablename__ = "calendar_notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("safety_calendar_events.id"), nullable=True)
    message = Column(Text, nullable=False)
    notification_type = Column(String(20), default="reminder", nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("CalendarEvent", back_populates="notifications")


class CalendarCategory(Base):
    __tablename__ = "calendar_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    color = Column(String(20), default="#3b82f6", nullable=False)
    icon = Column(String(50), default="fa-calendar", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CalendarSetting(Base):
    __tablename__ = "calendar_settings"

    id = Column(Integer, primary_key=True, index=True)
    setting_key = Column(String(100), unique=True, nullable=False)
    setting_value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
