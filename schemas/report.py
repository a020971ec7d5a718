# app/schemas/report.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ReportCreate(BaseModel):
    fundraising_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=2000)
    spent_amount: Decimal = Field(..., ge=Decimal("0.01"))
    document_urls: List[str] = []
    document_descriptions: List[str] = []
    report_date: Optional[datetime] = None


class ReportRead(BaseModel):
    id: int
    fundraising_id: int
    title: str
    description: str
    spent_amount: Decimal
    document_urls: List[str] = []
    document_descriptions: List[str] = []
    report_date: datetime
    verified: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FileUploaded(BaseModel):
    url: str
