from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from plantpro.api.config import settings
from plantpro.api.core.exceptions import ForbiddenError, UnauthorizedError
from plantpro.api.models.enums import UserRole

# Password hashing context
# Configure bcrypt to truncate passwords at 72 bytes automatically
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__truncate_error=False,  # Don't raise error on long passwords
    bcrypt__ident="2b"  # Use 2b variant to avoid wrap-around bugs
)

# HTTP Bearer token scheme. Missing credentials are reported by
# get_current_user so the status code is always 401.
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity of the acting user as carried by the access token"""
    id: int
    role: UserRole


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt

    Note: bcrypt has a 72-byte limit, input is truncated to 72 bytes.
    """
    password_bytes = password.encode('utf-8')[:72]
    password_truncated = password_bytes.decode('utf-8', errors='ignore')
    return pwd_context.hash(password_truncated)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Tokens are issued by the auth service; this helper exists for scripts
    and tests that need to act as a given user.

    Args:
        data: Data to encode in token (typically {"sub": user_id, "role": role})
        expires_delta: Token expiration time (default: 30 minutes)

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str) -> dict:
    """
    Decode and validate JWT token

    Raises:
        UnauthorizedError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """
    Dependency resolving the acting user from the bearer token

    Usage:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    user_id = payload.get("sub")
    if user_id is None:
        raise UnauthorizedError("Could not validate credentials")

    try:
        return CurrentUser(id=int(user_id), role=UserRole(payload.get("role")))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")


def require_roles(*roles: UserRole):
    """
    Build a dependency that only lets the given roles through

    Usage:
        @router.get("/trends")
        async def trends(user: CurrentUser = Depends(require_roles(UserRole.MANAGER))):
            ...
    """
    allowed: Iterable[UserRole] = frozenset(roles)

    async def _check_role(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise ForbiddenError(
                f"Role '{user.role.value}' is not allowed to access this resource"
            )
        return user

    return _check_role
