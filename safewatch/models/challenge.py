from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from ..db import Base


class ChallengeType(str, PyEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    points = Column(Integer, default=10, nullable=False)
    badge_reward = Column(String(100), nullable=True)
    challenge_type = Column(Enum(ChallengeType), default=ChallengeType.DAILY, nullable=False)
    photo_required = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    completions = relationship(
        "ChallengeCompletion", back_populates="challenge", cascade="all, delete-orphan"
    )


class ChallengeCompletion(Base):
    __tablename__ = "challenge_completions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=False, index=True)
    evidence_urls = Column(Text, default="[]", nullable=False)
    comments = Column(Text, nullable=True)
    period_start = Column(String(10), nullable=False)
    period_end = Column(String(10), nullable=False)
    awarded_points = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())

    challenge = relationship("Challenge", back_populates="completions")
    user = relationship("User")
