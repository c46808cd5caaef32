from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from ..db import Base


class ToolboxTalk(Base):
    __tablename__ = "toolbox_talks"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), nullable=False, index=True)
    topic = Column(String(200), nullable=False)
    presenter = Column(String(100), nullable=True)
    area = Column(String(200), nullable=True)
    attendance = Column(Integer, default=0, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="Completed", nullable=False)
    is_tbt_of_day = Column(Boolean, default=False, nullable=False)
    evidence_urls = Column(Text, default="[]", nullable=False)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
