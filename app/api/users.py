"""
app/api/users.py

Admin user management and hour balance lookups.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user, require_roles
from app.models.user import Role, strip_private_fields
from app.schemas.response import success_response
from app.schemas.user import CreateUserRequest, UpdateUserRequest
from app.services import user_service

router = APIRouter(prefix="/users")

admin_only = require_roles(Role.ADMIN.value)


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    admin: Dict[str, Any] = Depends(admin_only),
):
    users, total, pagination = await user_service.list_users(page, limit)
    return success_response(users, count=len(users), pagination=pagination)


@router.post("", status_code=201)
async def create_user(body: CreateUserRequest, admin: Dict[str, Any] = Depends(admin_only)):
    user = await user_service.create_user(body.model_dump())
    return success_response(user)


@router.get("/{user_id}")
async def get_user(user_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    user_service.ensure_self_or_admin(current_user, user_id)
    user = await user_service.require_user(user_id)
    return success_response(strip_private_fields(user))


@router.put("/{user_id}")
async def update_user(user_id: str, body: UpdateUserRequest, admin: Dict[str, Any] = Depends(admin_only)):
    user = await user_service.update_user(user_id, body.model_dump(exclude_unset=True, exclude_none=True))
    return success_response(user)


@router.delete("/{user_id}")
async def delete_user(user_id: str, admin: Dict[str, Any] = Depends(admin_only)):
    await user_service.delete_user(user_id)
    return success_response()


@router.get("/{user_id}/hours")
async def get_user_hours(user_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    user_service.ensure_self_or_admin(current_user, user_id)
    hours = await user_service.get_user_hours(user_id)
    return success_response(hours)
