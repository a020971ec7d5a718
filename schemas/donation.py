# app/schemas/donation.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from models.donation import PaymentStatus


# ---------- create ----------
class DonationCreate(BaseModel):
    charity_id: int
    fundraising_id: Optional[int] = None  # None targets the general fund
    amount: Decimal = Field(..., ge=Decimal("0.01"), max_digits=14, decimal_places=2)
    message: Optional[str] = Field(None, max_length=1000)
    anonymous: bool = False
    recurring: bool = False
    recurring_interval: Optional[str] = None
    payment_method: str = "CARD"


class DonationStatusUpdate(BaseModel):
    status: PaymentStatus


# ---------- read ----------
class DonationRead(BaseModel):
    id: int
    transaction_id: str
    amount: Decimal
    user_id: int
    fundraising_id: int
    payment_method: Optional[str] = None
    payment_status: PaymentStatus
    message: Optional[str] = None
    anonymous: bool
    recurring: bool
    recurring_interval: Optional[str] = None
    created_at: Optional[datetime] = None

    # display fields
    status: Optional[str] = None
    fundraising_title: Optional[str] = None
    charity_name: Optional[str] = None

    class Config:
        from_attributes = True


class DonationCreated(BaseModel):
    donation: DonationRead
    recurring_schedule_error: Optional[str] = None
