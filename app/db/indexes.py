"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Enforces email uniqueness and idempotent payment verification
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import (
    get_users_collection,
    get_quotations_collection,
    get_payments_collection,
    get_notifications_collection,
    get_rate_configs_collection,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        quotations = get_quotations_collection()
        payments = get_payments_collection()
        notifications = get_notifications_collection()
        rate_configs = get_rate_configs_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS
        # ==============================================

        await users.create_index("email", unique=True, name="email_unique")
        await users.create_index("role", name="role_idx")
        await users.create_index(
            "email_verification_token",
            name="verification_token_idx",
            sparse=True
        )
        logger.debug("Created users indexes")

        # ==============================================
        # QUOTATIONS
        # ==============================================

        await quotations.create_index(
            [("user", ASCENDING), ("created_at", DESCENDING)],
            name="user_quotations_idx"
        )
        await quotations.create_index("status", name="quotation_status_idx")
        logger.debug("Created quotations indexes")

        # ==============================================
        # PAYMENTS
        # ==============================================

        await payments.create_index(
            [("user", ASCENDING), ("payment_date", DESCENDING)],
            name="user_payments_idx"
        )

        # A gateway order can only ever be credited once
        await payments.create_index(
            [("gateway", ASCENDING), ("order_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"order_id": {"$type": "string"}},
            name="gateway_order_unique"
        )
        logger.debug("Created payments indexes")

        # ==============================================
        # NOTIFICATIONS
        # ==============================================

        await notifications.create_index(
            [("user", ASCENDING), ("created_at", DESCENDING)],
            name="user_notifications_idx"
        )
        await notifications.create_index("quotation", name="notification_quotation_idx", sparse=True)

        # ==============================================
        # RATE CONFIGS
        # ==============================================

        await rate_configs.create_index(
            [("is_active", ASCENDING), ("effective_from", DESCENDING)],
            name="active_rate_idx"
        )

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
