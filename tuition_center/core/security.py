# tuition_center/core/security.py
"""Password hashing, bearer tokens and role gates."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .exceptions import AuthenticationError, PermissionDeniedError
from ..models.user import UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


@dataclass(frozen=True)
class TokenUser:
    """Claims carried by an access token"""
    user_id: UUID
    email: str
    role: UserRole


def create_access_token(user_id: UUID, email: str, role: UserRole) -> str:
    payload = {
        "userId": str(user_id),
        "email": email,
        "role": role.value,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenUser:
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return TokenUser(
            user_id=UUID(claims["userId"]),
            email=claims["email"],
            role=UserRole(claims["role"]),
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise AuthenticationError("Invalid token")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return decode_access_token(credentials.credentials)


def require_roles(*roles: UserRole):
    """Dependency factory allowing only the given roles through"""
    async def checker(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if user.role not in roles:
            if len(roles) == 1:
                raise PermissionDeniedError(f"{roles[0].value} access required")
            allowed = ", ".join(role.value for role in roles)
            raise PermissionDeniedError(f"Access denied. Required roles: {allowed}")
        return user
    return checker
