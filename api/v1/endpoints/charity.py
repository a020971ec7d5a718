# app/api/v1/endpoints/charity.py
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.exceptions import ForbiddenError
from core.permissions import get_current_user, require_admin
from models.user import User
from schemas.charity import CharityCreate, CharityUpdate, CharityRead
from services.charity_service import CharityService

router = APIRouter()


def generate_registration_number() -> str:
    """Fallback for organisations registering without a number."""
    return f"ORG-{int(time.time() * 1000)}"


# --------------------------
# 1️⃣ CRUD
# --------------------------

@router.post("", response_model=CharityRead, status_code=status.HTTP_201_CREATED)
async def create_charity(
        name: str = Form(...),
        description: str = Form(...),
        registration_number: Optional[str] = Form(None),
        contact_email: str = Form(...),
        website_url: Optional[str] = Form(None),
        categories: List[str] = Form([]),
        contact_phone: Optional[str] = Form(None),
        contact_address: Optional[str] = Form(None),
        organization_name: Optional[str] = Form(None),
        tax_id: Optional[str] = Form(None),
        account_number: Optional[str] = Form(None),
        routing_code: Optional[str] = Form(None),
        bank_name: Optional[str] = Form(None),
        documents: Optional[List[UploadFile]] = File(None),
        document_titles: Optional[List[str]] = Form(None),
        document_descriptions: Optional[List[str]] = Form(None),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    """Register a charity; it starts unverified with an empty general fund."""
    if not registration_number or not registration_number.strip():
        registration_number = generate_registration_number()

    try:
        charity_data = CharityCreate(
            name=name,
            description=description,
            website_url=website_url,
            categories=categories,
            registration_number=registration_number,
            contact_email=contact_email,
            contact_phone=contact_phone,
            contact_address=contact_address,
            organization_name=organization_name,
            tax_id=tax_id,
            account_number=account_number,
            routing_code=routing_code,
            bank_name=bank_name,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    service = CharityService(db)
    return await service.create_charity(
        charity_data, current_user.id, documents or [], document_titles, document_descriptions
    )


@router.get("", response_model=List[CharityRead])
async def list_charities(db: AsyncSession = Depends(get_db)):
    return await CharityService(db).list_charities()


@router.get("/category/{category}", response_model=List[CharityRead])
async def list_by_category(category: str, db: AsyncSession = Depends(get_db)):
    return await CharityService(db).list_by_category(category)


@router.get("/{charity_id}", response_model=CharityRead)
async def get_charity(charity_id: int, db: AsyncSession = Depends(get_db)):
    return await CharityService(db).get_charity(charity_id)


@router.put("/{charity_id}", response_model=CharityRead)
async def update_charity(
        charity_id: int,
        update_data: CharityUpdate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await CharityService(db).update_charity(charity_id, update_data, current_user.id)


@router.delete("/{charity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_charity(
        charity_id: int,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = CharityService(db)
    charity = await service.get_charity(charity_id)
    if charity.created_by_id != current_user.id and not current_user.is_admin:
        raise ForbiddenError("Only the creator of the charity can delete it")
    await service.delete_charity(charity_id)


# --------------------------
# 2️⃣ verification & documents
# --------------------------

@router.put("/{charity_id}/verify", response_model=CharityRead)
async def verify_charity(
        charity_id: int,
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    return await CharityService(db).verify_charity(charity_id)


@router.post("/{charity_id}/documents", response_model=CharityRead)
async def upload_documents(
        charity_id: int,
        documents: List[UploadFile] = File(...),
        titles: Optional[List[str]] = Form(None),
        descriptions: Optional[List[str]] = Form(None),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await CharityService(db).upload_documents(
        charity_id, documents, titles, descriptions, current_user.id
    )
