from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..db import Base


class StatusLog(Base):
    """Append-only status trail for any entity, keyed by (entity_type, entity_id)."""
    __tablename__ = "status_log"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    previous_status = Column(String(100), nullable=True)
    new_status = Column(String(100), nullable=True)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    changed_at = Column(DateTime(timezone=True), server_default=func.now())
    remarks = Column(Text, nullable=True)

    actor = relationship("User", foreign_keys=[changed_by])
