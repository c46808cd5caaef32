from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from ..db import Base


class ObservationStatus(str, PyEnum):
    OPEN = "Open"
    CLOSED = "Closed"


class CorrectiveActionStatus(str, PyEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class RiskLevel(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ObservationClass(str, PyEnum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"


class VerificationDecision(str, PyEnum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Observation(Base):
    __tablename__ = "observations"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), nullable=False, index=True)
    time = Column(String(8), nullable=True)
    area = Column(String(200), nullable=True, index=True)
    location = Column(String(200), nullable=True)
    observation_type = Column(String(100), nullable=True)
    observation_class = Column(Enum(ObservationClass), default=ObservationClass.NEGATIVE, nullable=False)
    activity_type = Column(String(100), nullable=True)
    injury_type = Column(String(100), nullable=True)
    injury_body_part = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)

    direct_cause = Column(Text, nullable=True)
    root_cause = Column(Text, nullable=True)
    immediate_action = Column(Text, nullable=True)
    corrective_action = Column(Text, nullable=True)
    corrective_action_status = Column(
        Enum(CorrectiveActionStatus),
        default=CorrectiveActionStatus.NOT_STARTED,
        nullable=False,
    )
    corrective_action_due_date = Column(String(10), nullable=True)
    corrective_action_assigned_to = Column(String(100), nullable=True)

    risk_level = Column(Enum(RiskLevel), default=RiskLevel.MEDIUM, nullable=False)
    status = Column(Enum(ObservationStatus), default=ObservationStatus.OPEN, nullable=False, index=True)

    # Reporter is recorded by name and employee id, not by foreign key
    reported_by = Column(String(100), nullable=True)
    reported_by_id = Column(String(50), nullable=True, index=True)

    closed_by = Column(String(100), nullable=True)
    closed_date = Column(DateTime(timezone=True), nullable=True)
    closed_notes = Column(Text, nullable=True)

    evidence_urls = Column(Text, default="[]", nullable=False)
    close_evidence_urls = Column(Text, default="[]", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    verifications = relationship(
        "Verification",
        back_populates="observation",
        cascade="all, delete-orphan",
        order_by="Verification.id",
    )


class Verification(Base):
    __tablename__ = "verifications"

    id = Column(Integer, primary_key=True, index=True)
    observation_id = Column(Integer, ForeignKey("observations.id"), nullable=False, index=True)
    verified_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    remarks = Column(Text, nullable=False)
    status = Column(Enum(VerificationDecision), nullable=False)
    verified_at = Column(DateTime(timezone=True), server_default=func.now())

    observation = relationship("Observation", back_populates="verifications")
    verifier = relationship("User", foreign_keys=[verified_by])
