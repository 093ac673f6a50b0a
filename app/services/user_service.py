"""
app/services/user_service.py

Purpose: User data management

- Lookup by id / email
- Admin-side create, update, delete and paginated listing
- Hour balance reads and atomic balance changes
"""

from app.db.mongo import (
    get_users_collection,
    to_object_id,
)
from app.core.config import settings
from app.core.exceptions import ForbiddenError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.core.security import hash_password
from app.models.user import Role, new_user_document, strip_private_fields
from app.services.notification_service import get_notification_service
from utils import time_utils
from utils.constants import MSG_USER_EXISTS, MSG_USER_NOT_FOUND
from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from typing import Optional, Dict, Any, List, Tuple

logger = get_logger(__name__)


async def get_user_by_id(user_id) -> Optional[Dict[str, Any]]:
    """
    Retrieves a user by id.

    Args:
        user_id: ObjectId or its string form

    Returns:
        User document or None if not found
    """
    users = get_users_collection()
    return await users.find_one({"_id": to_object_id(user_id, "User")})


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    users = get_users_collection()
    return await users.find_one({"email": email})


async def email_in_use(email: str, exclude_id: Optional[ObjectId] = None) -> bool:
    """
    Checks whether an email already belongs to an account.

    Args:
        email: Normalized email
        exclude_id: Account allowed to hold the email (the one being updated)
    """
    query: Dict[str, Any] = {"email": email}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return await get_users_collection().find_one(query, {"_id": 1}) is not None


async def require_user(user_id) -> Dict[str, Any]:
    user = await get_user_by_id(user_id)
    if not user:
        raise ResourceNotFoundError(f"User not found with id of {user_id}")
    return user


def ensure_self_or_admin(current_user: Dict[str, Any], user_id) -> None:
    """
    Raises ForbiddenError unless the caller is an admin or the user themselves.
    """
    if current_user.get("role") == Role.ADMIN.value:
        return
    if str(current_user["_id"]) != str(user_id):
        raise ForbiddenError("Not authorized to access this user")


async def list_users(page: int = 1, limit: int = 25) -> Tuple[List[Dict[str, Any]], int, Dict[str, Any]]:
    """
    Lists users, oldest first.

    Returns:
        (users without private fields, total count, pagination info)
    """
    page = max(page, 1)
    limit = max(limit, 1)
    users = get_users_collection()

    total = await users.count_documents({})
    cursor = users.find(
        {},
        sort=[("created_at", ASCENDING)],
        skip=(page - 1) * limit,
        limit=limit,
    )
    items = await cursor.to_list(length=None)

    pagination: Dict[str, Any] = {}
    if page * limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        pagination["prev"] = {"page": page - 1, "limit": limit}

    return [strip_private_fields(u) for u in items], total, pagination


async def create_user(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Admin-provisioned account.

    Args:
        data: Validated CreateUserRequest fields

    Returns:
        Created user without private fields
    """
    if await email_in_use(data["email"]):
        raise ValidationError(MSG_USER_EXISTS)

    hours = data.get("hours_balance")
    document = new_user_document(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=data.get("role") or Role.USER.value,
        hours_balance=settings.DEFAULT_HOURS_BALANCE if hours is None else hours,
        now=time_utils.utcnow(),
        phone=data.get("phone"),
        company=data.get("company"),
        is_verified=data.get("is_verified", True),
    )

    try:
        result = await get_users_collection().insert_one(document)
    except DuplicateKeyError:
        raise ValidationError(MSG_USER_EXISTS)

    document["_id"] = result.inserted_id
    logger.info("User created by admin", extra={"user_id": str(result.inserted_id)})
    return strip_private_fields(document)


async def update_user(user_id, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applies an admin update. Only provided fields are changed.
    """
    oid = to_object_id(user_id, "User")

    with LogContext(user_id=str(oid)):
        if "email" in changes and await email_in_use(changes["email"], exclude_id=oid):
            raise ValidationError(MSG_USER_EXISTS)

        if "hours_balance" in changes and changes["hours_balance"] < 0:
            raise ValidationError("Hours balance cannot be negative")

        update = _flatten_company(changes)
        update["updated_at"] = time_utils.utcnow()

        try:
            user = await get_users_collection().find_one_and_update(
                {"_id": oid},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ValidationError(MSG_USER_EXISTS)

        if not user:
            raise ResourceNotFoundError(f"User not found with id of {user_id}")

        logger.info(f"User updated: {', '.join(sorted(changes))}")
        return strip_private_fields(user)


async def delete_user(user_id) -> None:
    """
    Deletes an account and its notifications.

    Quotations and payments stay as business history.
    """
    oid = to_object_id(user_id, "User")
    result = await get_users_collection().delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"User not found with id of {user_id}")

    removed = await get_notification_service().delete_for_user(oid)
    logger.info(
        f"User deleted ({removed} notifications removed)",
        extra={"user_id": str(oid)},
    )


async def get_user_hours(user_id) -> Dict[str, Any]:
    user = await get_users_collection().find_one(
        {"_id": to_object_id(user_id, "User")},
        {"name": 1, "role": 1, "hours_balance": 1},
    )
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)
    return {
        "id": user["_id"],
        "name": user.get("name"),
        "role": user.get("role"),
        "hours": user.get("hours_balance", 0),
    }


async def debit_hours(user_id: ObjectId, hours: float) -> Optional[Dict[str, Any]]:
    """
    Atomically subtracts hours if the balance covers them.

    The balance check and the decrement are one conditional update, so two
    concurrent debits can never take the balance below zero.

    Returns:
        Updated user, or None when the balance is insufficient (or the user is gone)
    """
    return await get_users_collection().find_one_and_update(
        {"_id": user_id, "hours_balance": {"$gte": hours}},
        {"$inc": {"hours_balance": -hours}, "$set": {"updated_at": time_utils.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


async def credit_hours(user_id: ObjectId, hours: float) -> Optional[Dict[str, Any]]:
    return await get_users_collection().find_one_and_update(
        {"_id": user_id},
        {"$inc": {"hours_balance": hours}, "$set": {"updated_at": time_utils.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def _flatten_company(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Turns a partial company profile into dotted $set keys so untouched fields survive."""
    update = {key: value for key, value in changes.items() if key != "company"}
    company = changes.get("company")
    if company:
        for field, value in company.items():
            update[f"company.{field}"] = value
    return update
