# app/core/security.py
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from core.config import settings
from core.exceptions import InvalidTokenError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(subject: str, expires_minutes: int = None, extra_data: dict = None) -> str:
    """Signed access token with `sub`, `iat` and `exp` plus any extra claims."""
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    now = datetime.utcnow()
    payload = {
        "sub": subject,
        "exp": now + timedelta(minutes=expires_minutes),
        "type": "access",
        "iat": now,
    }

    if extra_data:
        payload.update(extra_data)

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def issue_token(user_id: int, email: str, expires_minutes: int = None) -> str:
    return create_access_token(
        subject=str(user_id),
        expires_minutes=expires_minutes,
        extra_data={"userId": user_id, "email": email},
    )


def _decode(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise InvalidTokenError("Invalid or expired token")


def validate_token(token: str) -> bool:
    try:
        _decode(token)
    except InvalidTokenError:
        return False
    return True


def extract_user_id(token: str) -> int:
    payload = _decode(token)
    user_id: Optional[int] = payload.get("userId")
    if user_id is None:
        raise InvalidTokenError("Invalid token")
    return int(user_id)


def extract_email(token: str) -> str:
    payload = _decode(token)
    email = payload.get("email")
    if email is None:
        raise InvalidTokenError("Invalid token")
    return email
