"""
Password hashing, JWT issuance and the authentication dependencies.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import NotAuthorized
from app.core.logging import bind_user, get_logger
from app.db.session import get_db
from app.models.user import User

logger = get_logger(__name__)
settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# auto_error=False so a missing header becomes 401 instead of 403
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {**data, "exp": expire, "iat": now}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> int:
    """Decode the bearer token and return the user id it was issued for."""
    if not token:
        raise _credentials_exception()

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("jwt_decode_failed", error=str(e))
        raise _credentials_exception()

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        logger.warning("jwt_invalid_subject", subject=subject)
        raise _credentials_exception()


async def get_optional_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[int]:
    """Like get_current_user_id, but anonymous or invalid tokens yield None."""
    if not token:
        return None
    try:
        return await get_current_user_id(token)
    except HTTPException:
        return None


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the authenticated user. Suspended and deleted accounts are refused."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise _credentials_exception()
    if user.status != "active":
        raise NotAuthorized(f"Account is {user.status}")
    bind_user(user.id)
    return user


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given user roles."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning("role_forbidden", user_id=user.id, role=user.role, required=list(roles))
            raise NotAuthorized(f"This action requires role: {', '.join(roles)}")
        return user

    return dependency


require_admin = require_roles("admin")
require_agent = require_roles("agent", "admin")


async def get_active_user_id(user: User = Depends(get_current_user)) -> int:
    """Id of the authenticated user, refusing suspended and deleted accounts."""
    return user.id
