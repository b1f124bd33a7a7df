"""
workisready/services/home_service.py

Purpose: Homepage sections

- Featured providers (curated list topped up from the is_featured flag)
- Urgent work and popular jobs with their task embedded
- Popular cities, live counts or manual numbers
- Site-wide stats
- Admin curation: search candidates, add, remove, reorder
"""

from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from utils.constants import (
    FEATURED_DAYS,
    FEATURED_PROVIDERS_ON_HOME,
    HOME_SEARCH_LIMIT,
    HOME_SECTION_PAGE,
    MAX_HOME_SECTION_ITEMS,
    URGENT_WORK_DAYS,
)
from utils.time_utils import expires_in, utcnow
from utils.validation_utils import contains_pattern, to_object_id
from workisready.core.exceptions import ResourceNotFoundError, ValidationError
from workisready.core.logging import get_logger
from workisready.models.home import FeaturedProvider, PopularCity, PopularJob, UrgentWork
from workisready.services.aggregation import count_task_categories
from workisready.services.provider_service import serialize_provider
from workisready.services.task_service import build_search_query, serialize_task

logger = get_logger(__name__)

FEATURED_PROVIDERS_SECTION = "featured-providers"
URGENT_WORK_SECTION = "urgent-work"
POPULAR_JOBS_SECTION = "popular-jobs"
POPULAR_CITIES_SECTION = "popular-cities"

SECTION_MODELS = {
    FEATURED_PROVIDERS_SECTION: FeaturedProvider,
    URGENT_WORK_SECTION: UrgentWork,
    POPULAR_JOBS_SECTION: PopularJob,
    POPULAR_CITIES_SECTION: PopularCity,
}

# Field that identifies the target of an entry; one entry per target
SECTION_KEYS = {
    FEATURED_PROVIDERS_SECTION: "provider_id",
    URGENT_WORK_SECTION: "task_id",
    POPULAR_JOBS_SECTION: "task_id",
    POPULAR_CITIES_SECTION: "name",
}

SECTION_LABELS = {
    FEATURED_PROVIDERS_SECTION: "featured providers",
    URGENT_WORK_SECTION: "urgent work",
    POPULAR_JOBS_SECTION: "popular jobs",
    POPULAR_CITIES_SECTION: "popular cities",
}

ENTRY_ORDER = [("order", ASCENDING), ("created_at", DESCENDING)]


def serialize_entry(section: str, document: Dict[str, Any]) -> Dict[str, Any]:
    return SECTION_MODELS[section].model_validate(document).model_dump(by_alias=True)


class HomeService:
    def __init__(self, sections: Dict[str, Any], tasks, providers, users):
        """
        Args:
            sections: Collection per section name (see SECTION_MODELS)
        """
        self.sections = sections
        self.tasks = tasks
        self.providers = providers
        self.users = users

    def _collection(self, section: str):
        if section not in SECTION_MODELS:
            raise ValidationError("Invalid section", details={"sections": list(SECTION_MODELS)})
        return self.sections[section]

    async def _active_entries(self, section: str, expiring: bool) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"is_active": True}
        if expiring:
            query["expires_at"] = {"$gt": utcnow()}
        cursor = self._collection(section).find(query).sort(ENTRY_ORDER).limit(HOME_SECTION_PAGE)
        return await cursor.to_list(length=HOME_SECTION_PAGE)

    async def _with_tasks(self, section: str, entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Embeds each entry's task; entries whose task is gone are skipped."""
        ids = [entry["task_id"] for entry in entries]
        tasks = {task["_id"]: task async for task in self.tasks.find({"_id": {"$in": ids}})}
        results = []
        for entry in entries:
            task = tasks.get(entry["task_id"])
            if task is None:
                continue
            data = serialize_entry(section, entry)
            data["task"] = serialize_task(task)
            results.append(data)
        return results

    # ------------------------------------------------------------------
    # Public sections
    # ------------------------------------------------------------------

    async def featured_providers(self) -> List[Dict[str, Any]]:
        """
        Curated entries first (active, unexpired, by order), then providers
        flagged ``is_featured``, newest first, up to the homepage slot count.
        """
        entries = await self._active_entries(FEATURED_PROVIDERS_SECTION, expiring=True)
        ids = [entry["provider_id"] for entry in entries]
        found = {doc["_id"]: doc async for doc in self.providers.find({"_id": {"$in": ids}})}

        providers: List[Dict[str, Any]] = []
        for entry in entries:
            provider = found.get(entry["provider_id"])
            if provider is not None:
                data = serialize_provider(provider)
                data["featuredOrder"] = entry.get("order", 0)
                providers.append(data)

        room = FEATURED_PROVIDERS_ON_HOME - len(providers)
        if room > 0:
            seen = [doc["_id"] for doc in found.values()]
            cursor = (
                self.providers.find({"is_featured": True, "_id": {"$nin": seen}})
                .sort("created_at", DESCENDING)
                .limit(room)
            )
            providers.extend(serialize_provider(doc) for doc in await cursor.to_list(length=room))

        return providers[:FEATURED_PROVIDERS_ON_HOME]

    async def urgent_work(self) -> List[Dict[str, Any]]:
        entries = await self._active_entries(URGENT_WORK_SECTION, expiring=True)
        return await self._with_tasks(URGENT_WORK_SECTION, entries)

    async def popular_jobs(self) -> List[Dict[str, Any]]:
        entries = await self._active_entries(POPULAR_JOBS_SECTION, expiring=False)
        return await self._with_tasks(POPULAR_JOBS_SECTION, entries)

    async def popular_cities(self) -> List[Dict[str, Any]]:
        entries = await self._active_entries(POPULAR_CITIES_SECTION, expiring=False)
        cities = []
        for entry in entries:
            if entry.get("is_auto_calculated"):
                cursor = self.tasks.find(
                    {"location": contains_pattern(entry["name"]), "status": "open"},
                    {"category": 1},
                )
                tasks = await cursor.to_list(length=None)
                total, categories = len(tasks), count_task_categories(tasks)
            else:
                total = entry.get("manual_job_count", 0)
                categories = entry.get("manual_categories") or {}
            cities.append({
                "_id": str(entry["_id"]),
                "name": entry["name"],
                "totalJobs": total,
                "categories": categories,
                "isAutoCalculated": bool(entry.get("is_auto_calculated")),
            })
        return cities

    async def stats(self) -> Dict[str, int]:
        return {
            "totalTasks": await self.tasks.count_documents({"status": "open"}),
            "totalProviders": await self.providers.count_documents({"is_approved": True}),
            "totalClients": await self.users.count_documents({"user_type": "client"}),
            "completedJobs": await self.tasks.count_documents({"status": "completed"}),
        }

    # ------------------------------------------------------------------
    # Admin curation
    # ------------------------------------------------------------------

    async def list_entries(self, section: str) -> List[Dict[str, Any]]:
        cursor = self._collection(section).find().sort(ENTRY_ORDER)
        return [serialize_entry(section, entry) for entry in await cursor.to_list(length=None)]

    async def search_tasks(self, text: str, section: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Open tasks matching ``text``, newest first, as curation candidates.
        With ``section`` each result says whether it is already listed there.
        """
        if not text or not text.strip():
            return []
        query = {**build_search_query(text), "status": "open"}
        cursor = self.tasks.find(query).sort("created_at", DESCENDING).limit(HOME_SEARCH_LIMIT)
        tasks = await cursor.to_list(length=HOME_SEARCH_LIMIT)

        listed = set()
        if section:
            if SECTION_KEYS.get(section) != "task_id":
                raise ValidationError(
                    "Invalid section",
                    details={"sections": [URGENT_WORK_SECTION, POPULAR_JOBS_SECTION]},
                )
            ids = [task["_id"] for task in tasks]
            listed = {entry["task_id"] async for entry in self.sections[section].find({"task_id": {"$in": ids}})}

        return [
            {
                "_id": str(task["_id"]),
                "title": task.get("title", ""),
                "category": task.get("category", []),
                "location": task.get("location", ""),
                "budget": task.get("budget"),
                "createdAt": task.get("created_at"),
                "alreadyListed": task["_id"] in listed,
            }
            for task in tasks
        ]

    async def search_providers(self, text: str) -> List[Dict[str, Any]]:
        """Providers matching ``text`` by name or category, best rated first."""
        if not text or not text.strip():
            return []
        pattern = contains_pattern(text)
        query = {"$or": [{"full_name": pattern}, {"category": pattern}]}
        cursor = self.providers.find(query).sort("average_rating", DESCENDING).limit(HOME_SEARCH_LIMIT)
        return [
            {
                "_id": str(provider["_id"]),
                "name": provider.get("full_name", ""),
                "category": provider.get("category", []),
                "location": ", ".join(
                    part for part in (provider.get("city"), provider.get("region")) if part
                ),
                "rating": provider.get("average_rating", 0),
                "isApproved": bool(provider.get("is_approved")),
                "isFeatured": bool(provider.get("is_featured")),
            }
            for provider in await cursor.to_list(length=HOME_SEARCH_LIMIT)
        ]

    async def _check_target(self, section: str, target: Any) -> None:
        if section == FEATURED_PROVIDERS_SECTION:
            found = await self.providers.find_one({"_id": target}, {"_id": 1})
            if not found:
                raise ResourceNotFoundError("Provider not found")
        elif section in (URGENT_WORK_SECTION, POPULAR_JOBS_SECTION):
            found = await self.tasks.find_one({"_id": target}, {"_id": 1})
            if not found:
                raise ResourceNotFoundError("Task not found")

    async def add_entry(self, section: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Adds an entry at the end of a section.

        Raises:
            ValidationError: Target already listed, or the section is full
        """
        collection = self._collection(section)
        key = SECTION_KEYS[section]
        label = SECTION_LABELS[section]

        target = fields.get(key)
        if key != "name":
            target = to_object_id(target)
        elif target:
            target = str(target).strip()
        if not target:
            raise ValidationError(f"Missing required fields: {key}")
        await self._check_target(section, target)

        if await collection.find_one({key: target}, {"_id": 1}):
            raise ValidationError(f"This entry is already in {label}")
        count = await collection.count_documents({"is_active": True})
        if count >= MAX_HOME_SECTION_ITEMS:
            raise ValidationError(f"Maximum {MAX_HOME_SECTION_ITEMS} {label} allowed")

        data = {**fields, key: target, "order": count, "created_at": utcnow()}
        if section == URGENT_WORK_SECTION and not data.get("expires_at"):
            data["expires_at"] = expires_in(days=URGENT_WORK_DAYS)
        elif section == FEATURED_PROVIDERS_SECTION and not data.get("expires_at"):
            data["expires_at"] = expires_in(days=FEATURED_DAYS)

        entry = SECTION_MODELS[section].model_validate(data)
        document = entry.to_mongo()
        try:
            result = await collection.insert_one(document)
        except DuplicateKeyError as e:
            raise ValidationError(f"This entry is already in {label}") from e
        document["_id"] = result.inserted_id

        if section == FEATURED_PROVIDERS_SECTION:
            await self.providers.update_one({"_id": target}, {"$set": {"is_featured": True}})

        logger.info(f"Added {target} to {section}")
        return serialize_entry(section, document)

    async def remove_entry(self, section: str, entry_id: str) -> None:
        collection = self._collection(section)
        oid = to_object_id(entry_id)
        entry = await collection.find_one({"_id": oid}) if oid else None
        if not entry:
            raise ResourceNotFoundError("Entry not found")
        await collection.delete_one({"_id": oid})
        if section == FEATURED_PROVIDERS_SECTION:
            await self.providers.update_one({"_id": entry["provider_id"]}, {"$set": {"is_featured": False}})
        logger.info(f"Removed {entry_id} from {section}")

    async def update_order(self, section: str, ids: List[str]) -> int:
        """Rewrites ``order`` by list position. Returns the number of entries touched."""
        collection = self._collection(section)
        updated = 0
        for position, value in enumerate(ids):
            oid = to_object_id(value)
            if oid is None:
                continue
            result = await collection.update_one({"_id": oid}, {"$set": {"order": position}})
            updated += result.matched_count
        return updated

