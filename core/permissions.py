# app/core/permissions.py
import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from core.security import extract_user_id, oauth2_scheme
from models.user import User

logger = logging.getLogger(__name__)


async def get_current_user(
        token: str = Depends(oauth2_scheme),
        db: AsyncSession = Depends(get_db),
) -> User:
    try:
        user_id = extract_user_id(token)
    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not authenticated")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        logger.warning(f"User {current_user.id} attempted an admin-only action")
        raise ForbiddenError("Administrator role required")
    return current_user
