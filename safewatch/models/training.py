from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..db import Base


class TrainingRole(Base):
    __tablename__ = "training_roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    assignments = relationship(
        "RoleTraining", back_populates="role", cascade="all, delete-orphan"
    )


class TrainingItem(Base):
    __tablename__ = "training_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    validity_years = Column(Integer, default=2, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    assignments = relationship(
        "RoleTraining", back_populates="training", cascade="all, delete-orphan"
    )


class RoleTraining(Base):
    """One cell of the training matrix: a role requires a training."""
    __tablename__ = "role_trainings"
    __table_args__ = (UniqueConstraint("role_id", "training_id", name="uq_role_training"),)

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("training_roles.id"), nullable=False, index=True)
    training_id = Column(Integer, ForeignKey("training_items.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    role = relationship("TrainingRole", back_populates="assignments")
    training = relationship("TrainingItem", back_populates="assignments")
