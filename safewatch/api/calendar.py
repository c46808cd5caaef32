import logging
from calendar import monthrange
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.calendar import CalendarCategory, CalendarEvent, CalendarNotification, EventStatus
from ..models.user import User
from ..schemas.calendar import (
    CalendarCategoryCreate,
    CalendarCategoryResponse,
    CalendarCategoryUpdate,
    CalendarEventCreate,
    CalendarEventResponse,
    CalendarEventUpdate,
    NotificationList,
)
from ..schemas.common import MessageResponse
from ..api.auth import get_current_user, get_optional_user, require_admin
from ..core.calendar import (
    approve_event,
    complete_event,
    create_event,
    get_settings,
    save_settings,
    update_event,
)
from ..core.queries import filter_search

logger = logging.getLogger(__name__)

router = APIRouter()

NOTIFICATION_LIMIT = 20


def _get_event_or_404(db: Session, event_id: int) -> CalendarEvent:
    event = db.query(CalendarEvent).filter(CalendarEvent.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def _get_category_or_404(db: Session, category_id: int) -> CalendarCategory:
    category = db.query(CalendarCategory).filter(CalendarCategory.id == category_id).first()
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _ensure_category_name_free(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(CalendarCategory).filter(CalendarCategory.name == name)
    if exclude_id is not None:
        query = query.filter(CalendarCategory.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name already exists")


@router.get("/events", response_model=List[CalendarEventResponse])
def list_events(
    event_type: Optional[str] = Query(None, alias="type"),
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    search: Optional[str] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Events in date order; month needs a year to take effect"""
    query = db.query(CalendarEvent)
    if event_type:
        query = query.filter(CalendarEvent.event_type == event_type)
    if event_status:
        query = query.filter(CalendarEvent.status == event_status)
    if year and month:
        last_day = monthrange(year, month)[1]
        query = query.filter(
            CalendarEvent.date >= f"{year:04d}-{month:02d}-01",
            CalendarEvent.date <= f"{year:04d}-{month:02d}-{last_day:02d}",
        )
    elif year:
        query = query.filter(CalendarEvent.date.like(f"{year:04d}-%"))
    query = filter_search(query, search, CalendarEvent.title, CalendarEvent.notes)
    return query.order_by(CalendarEvent.date.asc(), CalendarEvent.id.asc()).all()


@router.get("/events/{event_id}", response_model=CalendarEventResponse)
def get_event(
    event_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return _get_event_or_404(db, event_id)


@router.post("/events", response_model=CalendarEventResponse)
def add_event(
    payload: CalendarEventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    data = payload.model_dump(exclude={"attachments"})
    return create_event(db, current_user, data, payload.attachments)


@router.put("/events/{event_id}", response_model=CalendarEventResponse)
def edit_event(
    event_id: int,
    payload: CalendarEventUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Creator or admin edits details; status changes go through approve/complete"""
    event = _get_event_or_404(db, event_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"attachments"})
    return update_event(db, event, current_user, changes, payload.attachments)


@router.delete("/events/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = _get_event_or_404(db, event_id)
    with unit_of_work(db):
        db.delete(event)
    return {"success": True, "message": "Event deleted"}


@router.put("/events/{event_id}/approve", response_model=CalendarEventResponse)
def approve(
    event_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return approve_event(db, _get_event_or_404(db, event_id), current_user)


@router.put("/events/{event_id}/complete", response_model=CalendarEventResponse)
def complete(
    event_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return complete_event(db, _get_event_or_404(db, event_id), current_user)


@router.get("/notifications", response_model=NotificationList)
def my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest notifications for the current user, with the unread total"""
    rows = (
        db.query(CalendarNotification, CalendarEvent.title, CalendarEvent.date)
        .outerjoin(CalendarEvent, CalendarEvent.id == CalendarNotification.event_id)
        .filter(CalendarNotification.user_id == current_user.id)
        .order_by(CalendarNotification.created_at.desc(), CalendarNotification.id.desc())
        .limit(NOTIFICATION_LIMIT)
        .all()
    )
    unread = db.query(func.count(CalendarNotification.id)).filter(
        CalendarNotification.user_id == current_user.id,
        CalendarNotification.is_read.is_(False),
    ).scalar()

    notifications = []
    for notification, event_title, event_date in rows:
        notifications.append({
            "id": notification.id,
            "event_id": notification.event_id,
            "message": notification.message,
            "notification_type": notification.notification_type,
            "is_read": notification.is_read,
            "created_at": notification.created_at,
            "event_title": event_title,
            "event_date": event_date,
        })
    return {"notifications": notifications, "unread_count": unread}


@router.put("/notifications/read-all", response_model=MessageResponse)
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    with unit_of_work(db):
        db.query(CalendarNotification).filter(
            CalendarNotification.user_id == current_user.id
        ).update({CalendarNotification.is_read: True}, synchronize_session=False)
    return {"success": True, "message": "All notifications marked as read"}


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    # Other users' notifications are silently left alone
    with unit_of_work(db):
        db.query(CalendarNotification).filter(
            CalendarNotification.id == notification_id,
            CalendarNotification.user_id == current_user.id,
        ).update({CalendarNotification.is_read: True}, synchronize_session=False)
    return {"success": True, "message": "Notification marked as read"}


@router.get("/categories", response_model=List[CalendarCategoryResponse])
def list_categories(
    active: bool = False,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    query = db.query(CalendarCategory)
    if active:
        query = query.filter(CalendarCategory.is_active.is_(True))
    return query.order_by(CalendarCategory.sort_order.asc(), CalendarCategory.name.asc()).all()


@router.post("/categories", response_model=CalendarCategoryResponse)
def create_category(
    payload: CalendarCategoryCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    name = payload.name.strip()
    _ensure_category_name_free(db, name)
    last = db.query(func.max(CalendarCategory.sort_order)).scalar()
    category = CalendarCategory(
        name=name, color=payload.color, icon=payload.icon, sort_order=(last or 0) + 1,
    )
    with unit_of_work(db):
        db.add(category)
    db.refresh(category)
    return category


@router.put("/categories/{category_id}", response_model=CalendarCategoryResponse)
def update_category(
    category_id: int,
    payload: CalendarCategoryUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    category = _get_category_or_404(db, category_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        _ensure_category_name_free(db, changes["name"], exclude_id=category.id)
    with unit_of_work(db):
        for field, value in changes.items():
            setattr(category, field, value)
    db.refresh(category)
    return category


@router.delete("/categories/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Categories still used by events can only be deactivated"""
    category = _get_category_or_404(db, category_id)
    in_use = db.query(CalendarEvent).filter(CalendarEvent.event_type == category.name).count()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete: {in_use} events use this category. Deactivate instead."
        )
    with unit_of_work(db):
        db.delete(category)
    return {"success": True, "message": "Category deleted"}


@router.get("/settings", response_model=Dict[str, str])
def read_settings(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return get_settings(db)


@router.put("/settings", response_model=Dict[str, str])
def write_settings(
    payload: Dict[str, Any],
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    logger.info("Calendar settings %s updated by user %s", sorted(payload), current_user.id)
    return save_settings(db, payload)
