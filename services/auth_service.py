# app/services/auth_service.py
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.exceptions import DuplicateEmailError, InvalidCredentialsError
from core.security import hash_password, verify_password, issue_token
from models.user import User, UserRole
from schemas.user import TokenResponse, UserSummary

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------
    # REGISTER
    # ------------------------------------------------
    async def register_user(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        logger.info(f"Registering user {email}")

        existing = await self.db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            logger.warning(f"Registration attempt with existing email {email}")
            raise DuplicateEmailError("A user with this email already exists")

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            hashed_password=hash_password(password),
            role=role,
        )

        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"User {user.id} registered")
        return user

    async def register(self, email: str, password: str, **profile) -> TokenResponse:
        user = await self.register_user(email, password, **profile)
        return self.create_token(user)

    # ------------------------------------------------
    # LOGIN
    # ------------------------------------------------
    async def authenticate_user(self, email: str, password: str) -> User:
        logger.info(f"Login attempt for {email}")

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            logger.warning(f"Login failed: unknown email {email}")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if not verify_password(password, user.hashed_password):
            logger.warning(f"Login failed: wrong password for user {user.id}")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if not user.is_active:
            logger.warning(f"Login failed: user {user.id} is disabled")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        user.last_login_at = datetime.utcnow()
        await self.db.commit()

        logger.info(f"User {user.id} logged in")
        return user

    async def login(self, email: str, password: str) -> TokenResponse:
        user = await self.authenticate_user(email, password)
        return self.create_token(user)

    # ------------------------------------------------
    # TOKEN
    # ------------------------------------------------
    def create_token(self, user: User) -> TokenResponse:
        token = issue_token(user.id, user.email)
        logger.debug(f"Token issued for user {user.id}")
        return TokenResponse(token=token, user=UserSummary.model_validate(user))

    async def is_admin(self, user_id: int) -> bool:
        user = await self.db.get(User, user_id)
        return bool(user and user.is_admin)
