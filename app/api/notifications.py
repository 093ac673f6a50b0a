"""
app/api/notifications.py

The caller's notification inbox.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user
from app.schemas.response import success_response
from app.services.notification_service import NotificationService, get_notification_service

router = APIRouter(prefix="/notifications")


@router.get("")
async def list_notifications(
    user: Dict[str, Any] = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notifications = await service.list_for_user(user["_id"])
    return success_response(notifications, count=len(notifications))


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.mark_as_read(notification_id, user["_id"])
    return success_response(notification)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    await service.delete(notification_id, user["_id"])
    return success_response()
