from typing import Optional

from sqlalchemy.orm import Session

from ..models.audit import StatusLog

OBSERVATION_ENTITY = "observation"
CORRECTIVE_ACTION_ENTITY = "observation_corrective_action"
PERMIT_ENTITY = "permit"
CALENDAR_EVENT_ENTITY = "calendar_event"


def _status_text(value) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", value)


def record_status_change(
    db: Session,
    entity_type: str,
    entity_id: int,
    previous_status,
    new_status,
    changed_by: Optional[int],
    remarks: Optional[str] = None,
) -> StatusLog:
    """Append a status log row. Enum statuses are stored by their value."""
    entry = StatusLog(
        entity_type=entity_type,
        entity_id=entity_id,
        previous_status=_status_text(previous_status),
        new_status=_status_text(new_status),
        changed_by=changed_by,
        remarks=remarks,
    )
    db.add(entry)
    return entry
