"""
app/api/deps.py

Purpose: Request dependencies

- Resolve the caller from a Bearer header or the auth cookie
- Block unverified accounts outside the verification routes
- Role checks
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from jose import JWTError

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ForbiddenError, ResourceNotFoundError
from app.core.logging import get_logger
from app.core.security import decode_token
from app.db.mongo import get_users_collection, to_object_id

logger = get_logger(__name__)


def unverified_allowed_paths():
    """Routes an unverified account may still call."""
    prefix = settings.API_PREFIX
    return (
        f"{prefix}/auth/resend-verification",
        f"{prefix}/auth/verify-email",
        f"{prefix}/auth/logout",
    )


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token
    if cookie_token and cookie_token != "none":
        return cookie_token
    return None


async def authenticate_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Resolves a token to its user document.

    Raises:
        AuthenticationError: Missing, malformed, tampered or expired token, or deleted user
    """
    if not token:
        raise AuthenticationError()

    try:
        claims = decode_token(token)
        user_id = to_object_id(claims.get("id"), "User")
    except (JWTError, ResourceNotFoundError):
        raise AuthenticationError()

    user = await get_users_collection().find_one({"_id": user_id})
    if not user:
        raise AuthenticationError()
    return user


async def get_current_user(request: Request) -> Dict[str, Any]:
    token = extract_token(
        request.headers.get("authorization"),
        request.cookies.get(settings.COOKIE_NAME),
    )
    user = await authenticate_token(token)

    if not user.get("is_verified") and not request.url.path.startswith(unverified_allowed_paths()):
        raise ForbiddenError("Please verify your email to access this resource")

    return user


def require_roles(*roles: str):
    """
    Dependency factory: the caller must hold one of `roles`.
    """
    async def checker(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise ForbiddenError(f"User role {user.get('role')} is not authorized to access this route")
        return user

    return checker
