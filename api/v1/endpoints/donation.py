# app/api/v1/endpoints/donation.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.permissions import get_current_user, require_admin
from models.user import User
from schemas.donation import DonationCreate, DonationRead, DonationCreated, DonationStatusUpdate
from services.donation_service import DonationService

router = APIRouter()


@router.post("", response_model=DonationCreated, status_code=status.HTTP_201_CREATED)
async def create_donation(
        donation_data: DonationCreate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    result = await DonationService(db).create_donation(donation_data, current_user.id)
    return DonationCreated(
        donation=DonationRead.model_validate(result.donation),
        recurring_schedule_error=result.recurring_schedule_error,
    )


@router.get("/user", response_model=List[DonationRead])
async def get_user_donations(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await DonationService(db).get_user_donations(current_user.id)


@router.get("/fundraising/{fundraising_id}", response_model=List[DonationRead])
async def get_fundraising_donations(fundraising_id: int, db: AsyncSession = Depends(get_db)):
    return await DonationService(db).get_fundraising_donations(fundraising_id)


@router.patch("/{donation_id}/status", response_model=DonationRead)
async def update_donation_status(
        donation_id: int,
        status_data: DonationStatusUpdate,
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db)
):
    return await DonationService(db).update_donation_status(donation_id, status_data.status)


@router.delete("/{donation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_donation(
        donation_id: int,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    await DonationService(db).delete_donation(donation_id, current_user.id)
