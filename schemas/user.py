# app/schemas/user.py
from pydantic import BaseModel, EmailStr, constr, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from models.user import UserRole


# ---------- register / login ----------
class UserCreate(BaseModel):
    email: EmailStr
    password: constr(min_length=6)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=r'^\+?[1-9]\d{1,14}$')

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@example.com",
                "password": "StrongPass123!",
                "first_name": "Jane",
                "last_name": "Doe",
                "phone": "+15550100",
            }
        }


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserSummary(BaseModel):
    id: int
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserSummary


class RoleCheck(BaseModel):
    is_admin: bool


# ---------- profile ----------
class UserProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r'^\+?[1-9]\d{1,14}$')


class ChangePassword(BaseModel):
    current_password: str
    new_password: constr(min_length=6)


class UserProfileRead(BaseModel):
    id: int
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    email_verified: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    # stats
    total_donations: int = 0
    total_donation_amount: Decimal = Decimal("0")
    active_recurring_payments: int = 0
