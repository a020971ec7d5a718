# app/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.permissions import get_current_user
from models.user import User
from schemas.user import UserCreate, UserLogin, TokenResponse, RoleCheck
from services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    service = AuthService(db)
    return await service.register(
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
    )


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    service = AuthService(db)
    return await service.login(email=data.email, password=data.password)


@router.get("/check-role", response_model=RoleCheck)
async def check_role(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
):
    service = AuthService(db)
    return RoleCheck(is_admin=await service.is_admin(current_user.id))
