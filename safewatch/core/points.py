"""Points ledger and level tiers.

``award_points`` is not idempotent: every call appends a ledger row and
moves the total. Callers award at most once per event and do so inside
the same unit of work as the event itself.
"""
import logging

from sqlalchemy.orm import Session

from ..models.points import PointsHistory
from ..models.user import User
from .errors import NotFoundError

logger = logging.getLogger(__name__)

# (minimum points, level), highest first
LEVEL_THRESHOLDS = (
    (500, "Platinum"),
    (200, "Gold"),
    (50, "Silver"),
)
BASE_LEVEL = "Bronze"

OBSERVATION_CREATED_POINTS = 10
OBSERVATION_VERIFIED_POINTS = 5
PERMIT_CREATED_POINTS = 8
PERMIT_CLOSED_POINTS = 4
TOOLBOX_TALK_CREATED_POINTS = 12
CALENDAR_EVENT_CREATED_POINTS = 5
CALENDAR_EVENT_COMPLETED_POINTS = 5
# Daily quiz earns one point per correct answer
QUIZ_POINTS_PER_CORRECT = 1


def calculate_level(points: int) -> str:
    for minimum, level in LEVEL_THRESHOLDS:
        if points >= minimum:
            return level
    return BASE_LEVEL


def award_points(db: Session, user_id: int, delta: int, reason: str) -> User:
    """Add ``delta`` (may be negative) to a user's total and recompute the level.

    Flushes but does not commit.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")

    user.points = (user.points or 0) + delta
    user.level = calculate_level(user.points)
    db.add(PointsHistory(user_id=user.id, points=delta, reason=reason))
    db.flush()

    logger.info(
        "Awarded %+d points to user %s (%s); total=%s level=%s",
        delta, user.id, reason, user.points, user.level,
    )
    return user
