# app/api/v1/endpoints/profile.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.permissions import get_current_user
from models.user import User
from schemas.user import UserProfileRead, UserProfileUpdate, ChangePassword
from services.user import UserService

router = APIRouter()


@router.get("", response_model=UserProfileRead)
async def get_profile(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await UserService(db).get_profile(current_user.id)


@router.put("", response_model=UserProfileRead)
async def update_profile(
        update_data: UserProfileUpdate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_profile(current_user.id, update_data)


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
        data: ChangePassword,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    await UserService(db).change_password(current_user.id, data.current_password, data.new_password)
