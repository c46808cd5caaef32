import json
from sqlalchemy import Boolean, Column, Integer, String, DateTime, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from ..db import Base


class UserRole(str, PyEnum):
    ADMIN = "admin"
    SAFETY_OFFICER = "safety_officer"
    HSE = "hse"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    password_hash = Column(String(255), nullable=False)
    approved = Column(Boolean, default=False, nullable=False)
    points = Column(Integer, default=0, nullable=False)
    level = Column(String(20), default="Bronze", nullable=False)
    badges_json = Column(Text, default="[]", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    points_history = relationship(
        "PointsHistory", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def badges(self) -> list:
        return json.loads(self.badges_json or "[]")
