# app/schemas/charity.py
from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from schemas.document import DocumentRead
from schemas.fundraising import FundraisingRead


# ---------- create / update ----------
class CharityBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: str = Field(..., min_length=1)
    website_url: Optional[str] = None
    categories: List[str] = []
    registration_number: str = Field(..., pattern=r'^[A-Z0-9-]+$')
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    contact_address: Optional[str] = None

    @validator('website_url')
    def validate_website(cls, v):
        if v and not v.startswith(('http://', 'https://')):
            v = 'https://' + v
        return v

    @validator('categories')
    def unique_categories(cls, v):
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class CharityCreate(CharityBase):
    """Bank fields may arrive blank here; the service rejects blanks with one error."""
    organization_name: Optional[str] = None
    tax_id: Optional[str] = None
    account_number: Optional[str] = None
    routing_code: Optional[str] = None
    bank_name: Optional[str] = None


class CharityUpdate(CharityBase):
    pass


# ---------- read ----------
class CharityRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    website_url: Optional[str] = None
    categories: List[str] = []
    registration_number: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_address: Optional[str] = None

    organization_name: str
    tax_id: str
    account_number: str
    routing_code: str
    bank_name: str

    verified: bool
    active: bool
    created_by_id: int
    created_at: Optional[datetime] = None
    documents: List[DocumentRead] = []
    fundraisings: List[FundraisingRead] = []

    # read-time aggregates
    total_donations: Decimal = Decimal("0")
    total_donors: int = 0
    recurring_donations_count: int = 0
    completed_fundraisings_count: int = 0
