# app/schemas/recurring_payment.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class RecurringPaymentCreate(BaseModel):
    fundraising_id: int
    amount: Decimal = Field(..., ge=Decimal("0.01"), max_digits=14, decimal_places=2)
    payment_day: int = Field(..., ge=1, le=31)


class RecurringPaymentRead(BaseModel):
    id: int
    user_id: int
    fundraising_id: int
    amount: Decimal
    payment_day: int
    next_payment_date: datetime
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProcessDueRead(BaseModel):
    processed: int
    skipped: int
    deactivated: int
