# app/api/v1/endpoints/fundraising.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.exceptions import ForbiddenError
from core.permissions import get_current_user
from models.user import User
from schemas.fundraising import FundraisingCreate, FundraisingUpdate, FundraisingRead
from services.fundraising_service import FundraisingService

router = APIRouter()


async def _require_creator(service: FundraisingService, fundraising_id: int, user: User) -> None:
    await service.get_fundraising(fundraising_id)
    if not user.is_admin and not await service.is_creator(user.id, fundraising_id):
        raise ForbiddenError("Only the creator of the fundraising can change it")


@router.post("", response_model=FundraisingRead, status_code=status.HTTP_201_CREATED)
async def create_fundraising(
        fundraising_data: FundraisingCreate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await FundraisingService(db).create_fundraising(fundraising_data, current_user.id)


@router.get("", response_model=List[FundraisingRead])
async def list_fundraisings(db: AsyncSession = Depends(get_db)):
    return await FundraisingService(db).list_all()


@router.get("/active", response_model=List[FundraisingRead])
async def list_active_fundraisings(db: AsyncSession = Depends(get_db)):
    return await FundraisingService(db).list_active()


@router.get("/charity/{charity_id}", response_model=List[FundraisingRead])
async def list_charity_fundraisings(charity_id: int, db: AsyncSession = Depends(get_db)):
    return await FundraisingService(db).list_by_charity(charity_id)


@router.get("/{fundraising_id}", response_model=FundraisingRead)
async def get_fundraising(fundraising_id: int, db: AsyncSession = Depends(get_db)):
    return await FundraisingService(db).get_fundraising(fundraising_id)


@router.put("/{fundraising_id}", response_model=FundraisingRead)
async def update_fundraising(
        fundraising_id: int,
        update_data: FundraisingUpdate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = FundraisingService(db)
    await _require_creator(service, fundraising_id, current_user)
    return await service.update_fundraising(fundraising_id, update_data)


@router.post("/{fundraising_id}/complete", response_model=FundraisingRead)
async def complete_fundraising(
        fundraising_id: int,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = FundraisingService(db)
    await _require_creator(service, fundraising_id, current_user)
    return await service.complete_fundraising(fundraising_id)


@router.delete("/{fundraising_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fundraising(
        fundraising_id: int,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = FundraisingService(db)
    await _require_creator(service, fundraising_id, current_user)
    await service.delete_fundraising(fundraising_id)
