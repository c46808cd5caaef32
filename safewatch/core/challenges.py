import json
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..db import unit_of_work
from ..models.challenge import Challenge, ChallengeCompletion, ChallengeType
from ..models.user import User
from .errors import NotFoundError, ValidationError
from .points import award_points

logger = logging.getLogger(__name__)

DEFAULT_CHALLENGES = [
    {
        "title": "Daily Safety Photo",
        "description": "Upload a photo showing safety practices in your work area",
        "points": 15,
        "challenge_type": ChallengeType.DAILY,
    },
    {
        "title": "Weekly Safety Inspection",
        "description": "Complete a weekly safety inspection and upload photo evidence",
        "points": 30,
        "challenge_type": ChallengeType.WEEKLY,
    },
    {
        "title": "Monthly Safety Report",
        "description": "Submit your monthly safety observation summary with photo evidence",
        "points": 50,
        "challenge_type": ChallengeType.MONTHLY,
    },
]

PERIOD_NAMES = {
    ChallengeType.DAILY: "today",
    ChallengeType.WEEKLY: "this week",
    ChallengeType.MONTHLY: "this month",
}


def challenge_period(challenge_type: ChallengeType, today: Optional[date] = None) -> Tuple[str, str]:
    """Return the ISO (start, end) dates of the current period; end is exclusive.

    Weeks start on Monday.
    """
    today = today or date.today()
    if challenge_type == ChallengeType.WEEKLY:
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
    elif challenge_type == ChallengeType.MONTHLY:
        start = today.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
    else:
        start = today
        end = today + timedelta(days=1)
    return start.isoformat(), end.isoformat()


def seed_challenges(db: Session) -> int:
    if db.query(Challenge).count():
        return 0
    with unit_of_work(db):
        for data in DEFAULT_CHALLENGES:
            db.add(Challenge(photo_required=True, is_active=True, **data))
    logger.info("Seeded %s default challenges", len(DEFAULT_CHALLENGES))
    return len(DEFAULT_CHALLENGES)


def find_completion(db: Session, user_id: int, challenge_id: int, period_start: str):
    return db.query(ChallengeCompletion).filter(
        ChallengeCompletion.user_id == user_id,
        ChallengeCompletion.challenge_id == challenge_id,
        ChallengeCompletion.period_start == period_start,
    ).first()


def submit_challenge(
    db: Session,
    challenge_id: int,
    user: User,
    evidence_urls: List[str],
    comments: Optional[str] = None,
    today: Optional[date] = None,
) -> dict:
    """Record a completion for the current period and award points and badge."""
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()
    if challenge is None:
        raise NotFoundError("Challenge not found")
    if not challenge.is_active:
        raise ValidationError("Challenge is not active")

    period_start, period_end = challenge_period(challenge.challenge_type, today)
    if find_completion(db, user.id, challenge.id, period_start):
        raise ValidationError(
            f"You have already submitted this challenge {PERIOD_NAMES[challenge.challenge_type]}"
        )

    if challenge.photo_required and not evidence_urls:
        raise ValidationError("Photo evidence is required for this challenge")

    badge_earned = None
    with unit_of_work(db):
        db.add(ChallengeCompletion(
            user_id=user.id,
            challenge_id=challenge.id,
            evidence_urls=json.dumps(evidence_urls or []),
            comments=comments,
            period_start=period_start,
            period_end=period_end,
            awarded_points=challenge.points,
        ))
        award_points(db, user.id, challenge.points, f"Completed challenge: {challenge.title}")

        if challenge.badge_reward:
            badges = json.loads(user.badges_json or "[]")
            if challenge.badge_reward not in badges:
                badges.append(challenge.badge_reward)
                user.badges_json = json.dumps(badges)
                badge_earned = challenge.badge_reward

    return {
        "success": True,
        "points_earned": challenge.points,
        "badge_earned": badge_earned,
        "period": {"start": period_start, "end": period_end},
    }
