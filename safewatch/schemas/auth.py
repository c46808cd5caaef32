from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from ..models.user import UserRole


class UserRegister(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None


class UserLogin(BaseModel):
    employee_id: str
    password: str


class UserResponse(BaseModel):
    id: int
    employee_id: str
    name: str
    email: Optional[str] = None
    role: UserRole
    approved: bool
    points: int
    level: str
    badges: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None


class TokenRefresh(BaseModel):
    refresh_token: str


class RegisterResponse(BaseModel):
    user: UserResponse
    pending: bool = True
    message: str


class UserRoleUpdate(BaseModel):
    role: UserRole


class PointsAdjustment(BaseModel):
    points: int
    reason: Optional[str] = None
