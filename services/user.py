# app/services/user.py
import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from core.exceptions import NotFoundError, DuplicateEmailError, InvalidCredentialsError
from core.security import hash_password, verify_password
from models.donation import Donation
from models.recurring_payment import RecurringPayment
from models.user import User
from schemas.user import UserProfileRead, UserProfileUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ---------- profile ----------
    async def get_profile(self, user_id: int) -> UserProfileRead:
        user = await self._get_user(user_id)

        donation_stats = await self.db.execute(
            select(func.count(Donation.id), func.coalesce(func.sum(Donation.amount), 0))
            .where(Donation.user_id == user_id)
        )
        count, total = donation_stats.one()

        active_recurring = await self.db.scalar(
            select(func.count(RecurringPayment.id)).where(
                and_(RecurringPayment.user_id == user_id, RecurringPayment.is_active == True)
            )
        )

        return UserProfileRead(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            role=user.role,
            email_verified=user.email_verified,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
            total_donations=count or 0,
            total_donation_amount=Decimal(str(total or 0)),
            active_recurring_payments=active_recurring or 0,
        )

    async def update_profile(self, user_id: int, update_data: UserProfileUpdate) -> UserProfileRead:
        user = await self._get_user(user_id)

        if update_data.email and update_data.email != user.email:
            taken = await self.db.execute(select(User).where(User.email == update_data.email))
            if taken.scalar_one_or_none():
                raise DuplicateEmailError("Email already in use")
            user.email = update_data.email
            user.email_verified = False

        for key in ("first_name", "last_name", "phone"):
            value = getattr(update_data, key)
            if value is not None:
                setattr(user, key, value)

        await self.db.commit()
        logger.info(f"Profile of user {user_id} updated")
        return await self.get_profile(user_id)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = await self._get_user(user_id)

        if not verify_password(current_password, user.hashed_password):
            logger.warning(f"Password change for user {user_id} rejected: wrong current password")
            raise InvalidCredentialsError("Current password is incorrect")

        user.hashed_password = hash_password(new_password)
        await self.db.commit()
        logger.info(f"Password of user {user_id} changed")
