from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from ..db import Base


class Equipment(Base):
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    asset_number = Column(String(100), nullable=True, index=True)
    equipment_type = Column(String(100), nullable=True)
    owner = Column(String(100), nullable=True)
    yard_area = Column(String(200), nullable=True)
    status = Column(String(50), default="In Service", nullable=False)
    pwas_required = Column(String(10), nullable=True)
    # Third-party inspection and insurance certificates
    tps_date = Column(String(10), nullable=True)
    tps_expiry = Column(String(10), nullable=True)
    ins_date = Column(String(10), nullable=True)
    ins_expiry = Column(String(10), nullable=True)
    operator_name = Column(String(100), nullable=True)
    operator_license = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
