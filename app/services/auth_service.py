"""
app/services/auth_service.py

Purpose: Account registration and credential checks

- Register with email verification code (30 minute validity)
- Verify / resend verification
- Login, token response payload
- Self-service detail and password updates
"""

from typing import Dict, Any, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    EmailNotVerifiedError,
    ExternalServiceError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.core.security import (
    create_access_token,
    generate_verification_code,
    hash_password,
    verify_password,
)
from app.db.mongo import get_users_collection
from app.models.user import new_user_document, strip_private_fields
from app.services import user_service
from app.services.email_service import get_email_service
from utils import time_utils
from utils.constants import (
    MSG_EMAIL_SEND_FAILED,
    MSG_USER_EXISTS,
    MSG_VERIFICATION_RESENT,
    MSG_VERIFICATION_SENT,
)
from utils.email_templates import EMAIL_VERIFICATION, render
from utils.validation_utils import normalize_email, validate_verification_code

logger = get_logger(__name__)


def _new_verification() -> Tuple[str, Any]:
    code = generate_verification_code()
    expires = time_utils.calculate_expiry(
        time_utils.utcnow(), settings.EMAIL_VERIFICATION_EXPIRE_MINUTES
    )
    return code, expires


async def _send_verification_email(user: Dict[str, Any], code: str, base_url: str) -> None:
    verification_url = f"{base_url.rstrip('/')}{settings.API_PREFIX}/auth/verify-email/{code}"
    html = render(EMAIL_VERIFICATION, {
        "userName": user.get("name") or "",
        "verificationUrl": verification_url,
        "code": code,
        "expiresMinutes": settings.EMAIL_VERIFICATION_EXPIRE_MINUTES,
    })
    await get_email_service().send(user["email"], "Email Verification", html)


async def register(data: Dict[str, Any], base_url: str) -> Dict[str, Any]:
    """
    Creates an unverified account and mails its verification code.

    If the email cannot be sent the account is removed again, so the
    address stays free for another attempt.

    Args:
        data: Validated RegisterRequest fields
        base_url: Public base URL of this API, used in the verification link

    Returns:
        {"email", "message"}
    """
    if await user_service.email_in_use(data["email"]):
        raise ValidationError(MSG_USER_EXISTS)

    code, expires = _new_verification()
    document = new_user_document(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=data.get("role") or "user",
        hours_balance=settings.DEFAULT_HOURS_BALANCE,
        now=time_utils.utcnow(),
        phone=data.get("phone"),
        company=data.get("company"),
        is_verified=False,
        verification_token=code,
        verification_expire=expires,
    )

    users = get_users_collection()
    try:
        result = await users.insert_one(document)
    except DuplicateKeyError:
        raise ValidationError(MSG_USER_EXISTS)
    document["_id"] = result.inserted_id

    with LogContext(user_id=str(result.inserted_id)):
        try:
            await _send_verification_email(document, code, base_url)
        except Exception as e:
            logger.error(f"Verification email failed, removing account: {e}")
            await users.delete_one({"_id": result.inserted_id})
            raise ExternalServiceError(MSG_EMAIL_SEND_FAILED) from e

        logger.info("Account registered, verification pending")

    return {"email": document["email"], "message": MSG_VERIFICATION_SENT}


async def verify_email(code: str) -> Dict[str, Any]:
    """
    Marks the account holding a live code as verified.

    Raises:
        InvalidOrExpiredTokenError: Unknown code, or code at/after its expiry
    """
    if not validate_verification_code(code):
        raise InvalidOrExpiredTokenError()

    now = time_utils.utcnow()
    user = await get_users_collection().find_one_and_update(
        {
            "email_verification_token": code.strip().lower(),
            "email_verification_expire": {"$gt": now},
        },
        {
            "$set": {
                "is_verified": True,
                "email_verification_token": None,
                "email_verification_expire": None,
                "updated_at": now,
            }
        },
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise InvalidOrExpiredTokenError()

    logger.info("Email verified", extra={"user_id": str(user["_id"])})
    return user


async def resend_verification(email: str, base_url: str) -> Dict[str, Any]:
    email = normalize_email(email)
    user = await user_service.get_user_by_email(email)
    if not user:
        raise ResourceNotFoundError("User not found")
    if user.get("is_verified"):
        raise ValidationError("Email already verified")

    code, expires = _new_verification()
    await get_users_collection().update_one(
        {"_id": user["_id"]},
        {"$set": {
            "email_verification_token": code,
            "email_verification_expire": expires,
            "updated_at": time_utils.utcnow(),
        }},
    )

    try:
        await _send_verification_email(user, code, base_url)
    except Exception as e:
        logger.error(f"Verification email resend failed: {e}", extra={"user_id": str(user["_id"])})
        raise ExternalServiceError(MSG_EMAIL_SEND_FAILED) from e

    return {"email": user["email"], "message": MSG_VERIFICATION_RESENT}


async def login(email: str, password: str) -> Dict[str, Any]:
    """
    Checks credentials.

    The password is verified before the verification flag so that the
    response does not reveal whether an unverified account exists.
    """
    if not email or not password:
        raise ValidationError("Please provide an email and password")

    user = await user_service.get_user_by_email(normalize_email(email))
    if not user or not verify_password(password, user.get("password_hash")):
        raise InvalidCredentialsError()

    if not user.get("is_verified"):
        raise EmailNotVerifiedError()

    logger.info("User logged in", extra={"user_id": str(user["_id"])})
    return user


def token_response(user: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Issues an access token for a user.

    Returns:
        (token, response body)
    """
    token = create_access_token(str(user["_id"]), user.get("role"))
    body = {
        "success": True,
        "user": {
            "id": str(user["_id"]),
            "name": user.get("name"),
            "email": user.get("email"),
        },
        "token": token,
        "role": user.get("role"),
    }
    return token, body


async def update_details(user: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    if not changes:
        return strip_private_fields(user)
    return await user_service.update_user(user["_id"], changes)


async def update_password(user: Dict[str, Any], current_password: str, new_password: str) -> Dict[str, Any]:
    stored = await get_users_collection().find_one({"_id": user["_id"]})
    if not stored or not verify_password(current_password, stored.get("password_hash")):
        raise AuthenticationError("Password is incorrect")

    updated = await get_users_collection().find_one_and_update(
        {"_id": user["_id"]},
        {"$set": {"password_hash": hash_password(new_password), "updated_at": time_utils.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Password changed", extra={"user_id": str(user["_id"])})
    return updated
