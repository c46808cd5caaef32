from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class EquipmentCreate(BaseModel):
    asset_number: Optional[str] = None
    equipment_type: Optional[str] = None
    owner: Optional[str] = None
    yard_area: Optional[str] = None
    status: str = "In Service"
    pwas_required: Optional[str] = None
    tps_date: Optional[str] = None
    tps_expiry: Optional[str] = None
    ins_date: Optional[str] = None
    ins_expiry: Optional[str] = None
    operator_name: Optional[str] = None
    operator_license: Optional[str] = None
    notes: Optional[str] = None


class EquipmentResponse(EquipmentCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
