"""
Database initialization script - indexes and first admin account

Run once after deploying:
    python scripts/init_db.py

Set ADMIN_EMAIL and ADMIN_PASSWORD in .env to create (or promote) an
admin account. Without them only the indexes are created.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from workisready.core.security import hash_password
from workisready.db import mongo
from workisready.db.indexes import create_indexes
from utils.time_utils import utcnow

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")


async def ensure_admin():
    """Creates the admin account, or promotes an existing user with that email."""
    users = mongo.get_users_collection()
    email = ADMIN_EMAIL.strip().lower()
    now = utcnow()

    result = await users.update_one(
        {"email": email},
        {
            "$set": {
                "role": "admin",
                "is_verified": True,
                "is_approved": True,
                "updated_at": now,
            },
            "$setOnInsert": {
                "name": ADMIN_NAME,
                "email": email,
                "password_hash": hash_password(ADMIN_PASSWORD),
                "user_type": "client",
                "last_approved_at": now,
                "created_at": now,
            },
        },
        upsert=True,
    )
    if result.upserted_id:
        logger.info(f"✅ Admin account created: {email}")
    else:
        logger.info(f"ℹ️  Existing account promoted to admin: {email}")


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  WorkIsReady Database Setup")
    logger.info("=" * 60 + "\n")

    await mongo.connect_to_mongo()
    try:
        await create_indexes()

        if ADMIN_EMAIL and ADMIN_PASSWORD:
            await ensure_admin()
        else:
            logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")

        db = mongo.get_database()
        for name in (mongo.USERS, mongo.TASKS, mongo.PROVIDERS):
            logger.info(f"  {name}: {await db[name].count_documents({})} documents")
    finally:
        await mongo.close_mongo_connection()

    logger.info("\n✅ Database initialization complete!")
    logger.info("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
