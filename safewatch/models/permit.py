from sqlalchemy import Column, Integer, String, DateTime, Text, Enum
from sqlalchemy.sql import func
from enum import Enum as PyEnum
from ..db import Base


class PermitStatus(str, PyEnum):
    ACTIVE = "Active"
    CLOSED = "Closed"


class Permit(Base):
    __tablename__ = "permits"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), nullable=False, index=True)
    area = Column(String(200), nullable=True)
    permit_type = Column(String(100), nullable=True)
    permit_number = Column(String(100), nullable=True)
    project = Column(String(200), nullable=True)
    receiver = Column(String(100), nullable=True)
    issuer = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(Enum(PermitStatus), default=PermitStatus.ACTIVE, nullable=False)
    created_by = Column(String(100), nullable=True)
    closed_by = Column(String(100), nullable=True)
    closed_date = Column(DateTime(timezone=True), nullable=True)
    closed_notes = Column(Text, nullable=True)
    evidence_urls = Column(Text, default="[]", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
