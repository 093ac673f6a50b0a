"""
app/services/notification_service.py

Purpose: Notification fan-out and inbox management

- Persists notification records
- Best-effort templated email
- Best-effort real-time push (per-user room or broadcast)
- Inbox listing, mark-as-read, delete (owner only)

Fan-out is never transactional with the state change that triggered it:
every failure is logged and swallowed so the primary write stands.
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import DESCENDING

from app.core.exceptions import ForbiddenError, ResourceNotFoundError
from app.core.logging import get_logger
from app.db.mongo import get_notifications_collection, get_users_collection, to_object_id
from app.models.notification import NotificationType, new_notification_document
from app.models.user import Role
from app.services.email_service import EmailService, get_email_service
from app.services.realtime_service import RealtimePublisher, get_realtime_publisher
from utils import time_utils
from utils.constants import (
    EVENT_NOTIFICATION_NEW,
    EVENT_NOTIFICATION_READ,
    EVENT_NOTIFICATION_DELETED,
)
from utils.email_templates import render

logger = get_logger(__name__)


class NotificationService:
    """Service for notifying users about lifecycle events."""

    def __init__(self, publisher: RealtimePublisher, mailer: EmailService):
        self.publisher = publisher
        self.mailer = mailer

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def get_admins(self) -> List[Dict[str, Any]]:
        """Re-fetched on every transition so new admins are included."""
        try:
            cursor = get_users_collection().find(
                {"role": Role.ADMIN.value},
                {"_id": 1, "email": 1, "name": 1},
            )
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error(f"Failed to load admin recipients: {e}", exc_info=True)
            return []

    async def notify(
        self,
        user_id: ObjectId,
        title: str,
        message: str,
        notification_type: NotificationType,
        quotation_id: Optional[ObjectId] = None,
    ) -> Optional[Dict[str, Any]]:
        """Persists one notification and pushes it to the owner's room."""
        try:
            document = new_notification_document(
                user_id=user_id,
                title=title,
                message=message,
                notification_type=notification_type,
                now=time_utils.utcnow(),
                quotation_id=quotation_id,
            )
            result = await get_notifications_collection().insert_one(document)
            document["_id"] = result.inserted_id
        except Exception as e:
            logger.error(
                f"Failed to persist notification '{title}': {e}",
                extra={"user_id": user_id},
                exc_info=True,
            )
            return None

        await self.publish(EVENT_NOTIFICATION_NEW, document, user_id=user_id)
        return document

    async def notify_many(
        self,
        user_ids: Iterable[ObjectId],
        title: str,
        message: str,
        notification_type: NotificationType,
        quotation_id: Optional[ObjectId] = None,
    ) -> int:
        created = 0
        for user_id in user_ids:
            if await self.notify(user_id, title, message, notification_type, quotation_id):
                created += 1
        return created

    async def email(self, to, subject: str, template: str, context: Dict[str, Any]) -> bool:
        """Renders and sends one email. Returns False instead of raising."""
        try:
            await self.mailer.send(to, subject, render(template, context))
            return True
        except Exception as e:
            logger.error(f"Email '{subject}' failed: {e}")
            return False

    async def publish(self, event: str, payload: Dict[str, Any], user_id: Optional[Any] = None) -> None:
        """Pushes an event to one user's room, or to everyone when user_id is None."""
        try:
            if user_id is not None:
                await self.publisher.emit_to_user(user_id, event, payload)
            else:
                await self.publisher.broadcast(event, payload)
        except Exception as e:
            logger.warning(f"Real-time event {event} not delivered: {e}")

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def list_for_user(self, user_id: ObjectId) -> List[Dict[str, Any]]:
        cursor = get_notifications_collection().find(
            {"user": user_id},
            sort=[("created_at", DESCENDING)],
        )
        return await cursor.to_list(length=None)

    async def _get_owned(self, notification_id: str, user_id: ObjectId, action: str) -> Dict[str, Any]:
        oid = to_object_id(notification_id, "Notification")
        notification = await get_notifications_collection().find_one({"_id": oid})
        if not notification:
            raise ResourceNotFoundError("Notification not found")
        if notification.get("user") != user_id:
            raise ForbiddenError(f"Not authorized to {action} this notification")
        return notification

    async def mark_as_read(self, notification_id: str, user_id: ObjectId) -> Dict[str, Any]:
        notification = await self._get_owned(notification_id, user_id, "mark")

        await get_notifications_collection().update_one(
            {"_id": notification["_id"]},
            {"$set": {"is_read": True}},
        )
        notification["is_read"] = True

        await self.publish(
            EVENT_NOTIFICATION_READ,
            {"id": notification["_id"], "message": "Notification marked as read"},
            user_id=user_id,
        )
        return notification

    async def delete(self, notification_id: str, user_id: ObjectId) -> None:
        notification = await self._get_owned(notification_id, user_id, "delete")

        await get_notifications_collection().delete_one({"_id": notification["_id"]})

        await self.publish(
            EVENT_NOTIFICATION_DELETED,
            {"id": notification["_id"], "message": "Notification deleted"},
            user_id=user_id,
        )

    async def delete_for_quotation(self, quotation_id: ObjectId) -> int:
        result = await get_notifications_collection().delete_many({"quotation": quotation_id})
        return result.deleted_count

    async def delete_for_user(self, user_id: ObjectId) -> int:
        result = await get_notifications_collection().delete_many({"user": user_id})
        return result.deleted_count


# Global service instance
_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get or create the notification service, wired to the shared publisher and mailer."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService(
            publisher=get_realtime_publisher(),
            mailer=get_email_service(),
        )
    return _notification_service
