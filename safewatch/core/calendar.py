"""Safety calendar: events, their approval lifecycle and creator notifications.

Events move Pending -> Approved -> Completed. The creator or an admin
may complete an event before it is approved. Creating and completing an
event each earn the creator points.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..db import unit_of_work
from ..models.calendar import (
    CalendarCategory,
    CalendarEvent,
    CalendarNotification,
    CalendarSetting,
    EventStatus,
)
from ..models.user import User, UserRole
from .audit import CALENDAR_EVENT_ENTITY, record_status_change
from .errors import AuthorizationError, StateTransitionError
from .points import CALENDAR_EVENT_COMPLETED_POINTS, CALENDAR_EVENT_CREATED_POINTS, award_points

logger = logging.getLogger(__name__)

# (name, color, icon)
DEFAULT_CATEGORIES = [
    ("Safety Meeting", "#22c55e", "fa-users"),
    ("Training", "#3b82f6", "fa-graduation-cap"),
    ("Inspection", "#f59e0b", "fa-search"),
    ("Audit", "#8b5cf6", "fa-clipboard-check"),
    ("Drill", "#ef4444", "fa-fire-extinguisher"),
    ("Toolbox Talk", "#06b6d4", "fa-tools"),
    ("Other", "#6b7280", "fa-calendar"),
]

DEFAULT_SETTINGS = {
    "default_view": "month",
    "require_approval": "true",
    "reminder_days": "1",
    "auto_approve_admin": "true",
    "notify_on_create": "true",
    "notify_on_approve": "true",
}


def seed_calendar(db: Session) -> int:
    """Seed default categories and settings into empty tables."""
    added = 0
    with unit_of_work(db):
        if not db.query(CalendarCategory).count():
            for sort_order, (name, color, icon) in enumerate(DEFAULT_CATEGORIES):
                db.add(CalendarCategory(name=name, color=color, icon=icon, sort_order=sort_order))
            added += len(DEFAULT_CATEGORIES)
        if not db.query(CalendarSetting).count():
            for key, value in DEFAULT_SETTINGS.items():
                db.add(CalendarSetting(setting_key=key, setting_value=value))
            added += len(DEFAULT_SETTINGS)
    if added:
        logger.info("Seeded %s calendar categories and settings", added)
    return added


def get_settings(db: Session) -> Dict[str, str]:
    """Stored settings over the defaults."""
    values = dict(DEFAULT_SETTINGS)
    for setting in db.query(CalendarSetting).all():
        values[setting.setting_key] = setting.setting_value
    return values


def save_settings(db: Session, updates: Dict[str, object]) -> Dict[str, str]:
    """Upsert each key; values are stored as text."""
    existing = {s.setting_key: s for s in db.query(CalendarSetting).all()}
    with unit_of_work(db):
        for key, value in updates.items():
            text = str(value).lower() if isinstance(value, bool) else str(value)
            if key in existing:
                existing[key].setting_value = text
            else:
                db.add(CalendarSetting(setting_key=key, setting_value=text))
    return get_settings(db)


def _enabled(settings: Dict[str, str], key: str) -> bool:
    return str(settings.get(key, "")).lower() == "true"


def _notify(db: Session, user_id: Optional[int], event: CalendarEvent, message: str, kind: str):
    if user_id is None:
        return
    db.add(CalendarNotification(
        user_id=user_id, event_id=event.id, message=message, notification_type=kind,
    ))


def _check_owner_or_admin(event: CalendarEvent, user: User, action: str):
    if event.created_by_id != user.id and user.role != UserRole.ADMIN:
        raise AuthorizationError(f"Not authorized to {action} this event")


def create_event(db: Session, user: User, data: dict, attachments=None) -> CalendarEvent:
    """Add an event; it starts Pending unless approval is off or an admin creates it."""
    settings = get_settings(db)
    approved = not _enabled(settings, "require_approval") or (
        user.role == UserRole.ADMIN and _enabled(settings, "auto_approve_admin")
    )

    event = CalendarEvent(
        **data,
        created_by=user.name,
        created_by_id=user.id,
        attachments=json.dumps(attachments or []),
        status=EventStatus.APPROVED if approved else EventStatus.PENDING,
    )
    if approved:
        event.approved_by = user.name
        event.approved_at = datetime.now(timezone.utc)

    with unit_of_work(db):
        db.add(event)
        db.flush()
        if not approved and _enabled(settings, "notify_on_create"):
            for admin in db.query(User).filter(User.role == UserRole.ADMIN, User.id != user.id).all():
                _notify(db, admin.id, event, f'New event "{event.title}" awaits approval', "approval_request")
        award_points(db, user.id, CALENDAR_EVENT_CREATED_POINTS, "Created calendar event")
    db.refresh(event)
    return event


def update_event(db: Session, event: CalendarEvent, user: User, changes: dict, attachments=None):
    _check_owner_or_admin(event, user, "edit")
    with unit_of_work(db):
        for field, value in changes.items():
            setattr(event, field, value)
        if attachments is not None:
            event.attachments = json.dumps(attachments)
    db.refresh(event)
    return event


def approve_event(db: Session, event: CalendarEvent, approver: User) -> CalendarEvent:
    if event.status != EventStatus.PENDING:
        raise StateTransitionError(f"Event is already {event.status.value.lower()}")

    settings = get_settings(db)
    with unit_of_work(db):
        event.status = EventStatus.APPROVED
        event.approved_by = approver.name
        event.approved_at = datetime.now(timezone.utc)
        record_status_change(
            db, CALENDAR_EVENT_ENTITY, event.id,
            EventStatus.PENDING, EventStatus.APPROVED, approver.id,
        )
        if _enabled(settings, "notify_on_approve"):
            _notify(db, event.created_by_id, event, f'Your event "{event.title}" has been approved', "approval")
    logger.info("Calendar event %s approved by user %s", event.id, approver.id)
    db.refresh(event)
    return event


def complete_event(db: Session, event: CalendarEvent, user: User) -> CalendarEvent:
    """Mark an event done and reward its creator once."""
    _check_owner_or_admin(event, user, "complete")
    if event.status == EventStatus.COMPLETED:
        raise StateTransitionError("Event is already completed")

    previous_status = event.status
    with unit_of_work(db):
        event.status = EventStatus.COMPLETED
        record_status_change(
            db, CALENDAR_EVENT_ENTITY, event.id,
            previous_status, EventStatus.COMPLETED, user.id,
        )
        creator = db.query(User).filter(User.id == event.created_by_id).first()
        if creator is not None:
            award_points(
                db, creator.id, CALENDAR_EVENT_COMPLETED_POINTS,
                f"Completed calendar event: {event.title}",
            )
    logger.info("Calendar event %s completed by user %s", event.id, user.id)
    db.refresh(event)
    return event
