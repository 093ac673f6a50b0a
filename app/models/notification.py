"""
app/models/notification.py

Purpose: Notification document model

- Owned by one user, optionally linked to a quotation
- Type mirrors the quotation lifecycle events
"""

from enum import Enum
from datetime import datetime
from typing import Optional, Dict, Any

from bson import ObjectId


class NotificationType(str, Enum):
    QUOTE_REQUESTED = "quote_requested"
    QUOTE_RAISED = "quote_raised"
    QUOTE_APPROVED = "quote_approved"
    QUOTE_REJECTED = "quote_rejected"
    QUOTE_ONGOING = "quote_ongoing"
    QUOTE_COMPLETED = "quote_completed"


def new_notification_document(
    user_id: ObjectId,
    title: str,
    message: str,
    notification_type: NotificationType,
    now: datetime,
    quotation_id: Optional[ObjectId] = None,
) -> Dict[str, Any]:
    return {
        "user": user_id,
        "quotation": quotation_id,
        "title": title,
        "message": message,
        "type": NotificationType(notification_type).value,
        "is_read": False,
        "created_at": now,
    }
