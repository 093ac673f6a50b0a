"""
Database initialization script

Creates indexes, the first admin account and an initial rate configuration:
    python scripts/init_db.py

Admin credentials come from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME in .env.
The initial rate comes from INITIAL_RATE_PER_HOUR / INITIAL_RATE_CURRENCY.
"""

import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.core.config import settings
from app.core.security import hash_password
from app.db.mongo import (
    connect_to_mongo,
    close_mongo_connection,
    get_database,
    get_users_collection,
    get_rate_configs_collection,
)
from app.db.indexes import create_indexes
from app.models.user import Role, new_user_document
from app.models.rate_config import new_rate_config_document
from utils import time_utils
from utils.validation_utils import normalize_email, validate_email

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def seed_admin():
    """Create the first admin account if it does not exist yet"""
    email = normalize_email(os.getenv("ADMIN_EMAIL"))
    password = os.getenv("ADMIN_PASSWORD")

    if not email or not password:
        logger.info("ℹ️  ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin seed")
        return
    if not validate_email(email):
        raise ValueError(f"❌ ADMIN_EMAIL is not a valid address: {email}")

    users = get_users_collection()
    if await users.find_one({"email": email}):
        logger.info(f"ℹ️  Admin {email} already exists")
        return

    admin = new_user_document(
        name=os.getenv("ADMIN_NAME", "Administrator"),
        email=email,
        password_hash=hash_password(password),
        role=Role.ADMIN.value,
        hours_balance=0,
        now=time_utils.utcnow(),
        is_verified=True,
    )
    await users.insert_one(admin)
    logger.info(f"✅ Admin {email} created")


async def seed_rate():
    """Create an initial active rate when none is active"""
    rates = get_rate_configs_collection()
    if await rates.find_one({"is_active": True}):
        logger.info("ℹ️  Active rate configuration already present")
        return

    rate = os.getenv("INITIAL_RATE_PER_HOUR")
    if not rate:
        logger.info("ℹ️  INITIAL_RATE_PER_HOUR not set, skipping rate seed")
        return

    document = new_rate_config_document(
        rate_per_hour=float(rate),
        currency=os.getenv("INITIAL_RATE_CURRENCY", "USD"),
        now=time_utils.utcnow(),
    )
    await rates.insert_one(document)
    logger.info(f"✅ Rate configuration created: {document['rate_per_hour']} {document['currency']}/h")


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  PrintQuote Database Setup")
    logger.info("=" * 60 + "\n")

    await connect_to_mongo()
    try:
        await create_indexes()

        db = get_database()
        for collection_name in ["users", "quotations", "payments", "notifications", "rate_configs"]:
            indexes = await db[collection_name].index_information()
            logger.info(f"  {collection_name}:")
            for idx_name in indexes.keys():
                if idx_name != "_id_":
                    logger.info(f"    ✅ {idx_name}")

        await seed_admin()
        await seed_rate()

        logger.info(f"\n✅ Database {settings.MONGODB_DB_NAME} initialization complete!")
    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise
    finally:
        await close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
