# app/schemas/fundraising.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from models.fundraising import FundraisingKind
from schemas.document import DocumentRead


class FundraisingCreate(BaseModel):
    charity_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=2000)
    target_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    image_url: Optional[str] = None
    diagnosis: Optional[str] = Field(None, max_length=1000)


class FundraisingUpdate(FundraisingCreate):
    pass


class FundraisingRead(BaseModel):
    id: int
    charity_id: int
    created_by_id: int
    kind: FundraisingKind
    title: str
    description: str
    image_url: Optional[str] = None
    diagnosis: Optional[str] = None
    target_amount: Decimal
    current_amount: Decimal
    remaining_amount: Optional[Decimal] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    active: bool
    completed: bool
    documents: List[DocumentRead] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
