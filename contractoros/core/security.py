"""Authentication utilities: JWT bearer tokens, password hashing, role guards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from contractoros.core.config import settings
from contractoros.core.exceptions import ForbiddenError, UnauthorizedError
from contractoros.core.roles import has_minimum_role

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved from a bearer token."""

    user_id: str
    org_id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(
    user_id: str,
    org_id: str,
    role: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "org": org_id,
        "role": role,
        "name": name,
        "email": email,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")


def user_from_token(token: str) -> CurrentUser:
    payload = decode_token(token)
    user_id = payload.get("sub")
    org_id = payload.get("org")
    if not user_id or not org_id:
        raise UnauthorizedError("Not authenticated")
    return CurrentUser(
        user_id=user_id,
        org_id=org_id,
        role=payload.get("role") or "",
        name=payload.get("name"),
        email=payload.get("email"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """FastAPI dependency: extracts and validates the current user from the JWT."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return user_from_token(credentials.credentials)


def require_role(minimum_role: str):
    """Dependency factory rejecting users below ``minimum_role``."""

    async def _guard(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_minimum_role(user.role, minimum_role):
            raise ForbiddenError(f"Requires {minimum_role} role or higher")
        return user

    return _guard
