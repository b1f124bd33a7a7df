"""
workisready/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Sparse uniqueness for optional contact numbers
- TTL index for login sessions
"""

from pymongo import ASCENDING, DESCENDING, TEXT

from workisready.db.mongo import (
    get_collection,
    USERS,
    SESSIONS,
    TASKS,
    PROVIDERS,
    PROVIDER_UPDATE_REQUESTS,
    FEATURED_PROVIDERS,
    URGENT_WORK,
    POPULAR_JOBS,
    POPULAR_CITIES,
)
from workisready.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_collection(USERS)
        sessions = get_collection(SESSIONS)
        tasks = get_collection(TASKS)
        providers = get_collection(PROVIDERS)
        update_requests = get_collection(PROVIDER_UPDATE_REQUESTS)

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index("email", unique=True, name="email_unique")

        # Phone/WhatsApp are unique only when present. A partial filter on
        # string values lets any number of users leave them unset or null.
        for field in ("phone", "whatsapp"):
            await users.create_index(
                field,
                unique=True,
                partialFilterExpression={field: {"$type": "string"}},
                name=f"{field}_unique_when_present"
            )
        await users.create_index("verification_token", sparse=True, name="verification_token_idx")
        await users.create_index("reset_token", sparse=True, name="reset_token_idx")
        await users.create_index("role", name="role_idx")
        logger.debug("Created users indexes")

        # ==============================================
        # SESSIONS COLLECTION INDEXES
        # ==============================================

        await sessions.create_index("token", unique=True, name="token_unique")
        await sessions.create_index("user_id", name="session_user_idx")
        await sessions.create_index(
            "expires_at",
            expireAfterSeconds=0,  # Delete when expires_at is reached
            name="session_expiry_ttl_idx"
        )
        logger.debug("Created sessions indexes")

        # ==============================================
        # TASKS COLLECTION INDEXES
        # ==============================================

        await tasks.create_index(
            [
                ("title", TEXT),
                ("description", TEXT),
                ("main_category", TEXT),
                ("category", TEXT),
                ("location", TEXT),
                ("region", TEXT),
            ],
            name="task_text_idx"
        )
        await tasks.create_index([("client_id", ASCENDING), ("created_at", DESCENDING)], name="client_tasks_idx")
        await tasks.create_index(
            [("region", ASCENDING), ("main_category", ASCENDING), ("status", ASCENDING)],
            name="region_main_category_status_idx"
        )
        await tasks.create_index([("category", ASCENDING), ("status", ASCENDING)], name="category_status_idx")
        await tasks.create_index([("status", ASCENDING), ("created_at", DESCENDING)], name="status_created_idx")
        logger.debug("Created tasks indexes")

        # ==============================================
        # PROVIDERS COLLECTION INDEXES
        # ==============================================

        await providers.create_index("user_id", unique=True, name="provider_user_unique")
        await providers.create_index(
            [("full_name", TEXT), ("bio", TEXT), ("skills", TEXT)],
            name="provider_text_idx"
        )
        await providers.create_index(
            [("city", ASCENDING), ("region", ASCENDING), ("district", ASCENDING)],
            name="provider_location_idx"
        )
        await providers.create_index([("average_rating", DESCENDING)], name="provider_rating_idx")
        await providers.create_index("category", name="provider_category_idx")
        await providers.create_index(
            [("is_approved", ASCENDING), ("created_at", DESCENDING)],
            name="provider_approved_created_idx"
        )
        logger.debug("Created providers indexes")

        # ==============================================
        # UPDATE REQUESTS / HOME CURATION
        # ==============================================

        await update_requests.create_index(
            [("status", ASCENDING), ("created_at", DESCENDING)],
            name="update_request_status_idx"
        )
        await update_requests.create_index("provider_id", name="update_request_provider_idx")

        await get_collection(FEATURED_PROVIDERS).create_index("provider_id", name="featured_provider_idx")
        await get_collection(URGENT_WORK).create_index("task_id", unique=True, name="urgent_task_unique")
        await get_collection(POPULAR_JOBS).create_index("task_id", unique=True, name="popular_task_unique")
        await get_collection(POPULAR_CITIES).create_index("name", unique=True, name="popular_city_unique")
        logger.debug("Created update request and curation indexes")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from workisready.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
