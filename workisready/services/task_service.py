"""
workisready/services/task_service.py

Purpose: Task listing and lifecycle

- Builds list/search filters from request parameters
- Paginated listing (page and count fetched concurrently)
- Create, owner-only update/status/delete
- Task images kept in sync with media storage
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile
from pymongo import DESCENDING, ReturnDocument

from utils.constants import MAX_TASK_IMAGES, TASK_STATUSES
from utils.pagination_utils import Pagination
from utils.time_utils import utcnow
from utils.validation_utils import (
    clean_list,
    contains_pattern,
    exact_pattern,
    normalize_region,
    parse_float,
    region_pattern,
    to_object_id,
)
from workisready.core.exceptions import PermissionDeniedError, ResourceNotFoundError, ValidationError
from workisready.core.logging import LogContext, get_logger
from workisready.models.task import TaskDocument
from workisready.models.user import public_user
from workisready.services import aggregation
from workisready.services.media_service import TASKS, MediaStorage, has_upload

logger = get_logger(__name__)

ALL_STATUSES = "all"
CLIENT_FIELDS = {"name": 1, "email": 1, "phone": 1, "whatsapp": 1, "profile_image": 1}


def build_task_query(
    region: Optional[str] = None,
    status: Optional[str] = None,
    main_category: Optional[str] = None,
    category: Optional[str] = None,
    city: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Builds the Mongo filter for the task list.

    - status defaults to "open"; "all" disables the status filter
    - region ignores case and a trailing "region" suffix
    - city ignores case
    - main_category is matched exactly, category by array membership

    Raises:
        ValidationError: Unknown status
    """
    query: Dict[str, Any] = {}

    status = (status or "open").strip().lower()
    if status != ALL_STATUSES:
        if status not in TASK_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}, {ALL_STATUSES}"
            )
        query["status"] = status

    if region and normalize_region(region):
        query["region"] = region_pattern(region)
    if city and city.strip():
        query["city"] = exact_pattern(city)
    if main_category and main_category.strip():
        query["main_category"] = main_category.strip()
    if category and category.strip():
        query["category"] = {"$in": [category.strip()]}

    return query


def build_search_query(text: str) -> Dict[str, Any]:
    """Substring search on title, description, category and location."""
    pattern = contains_pattern(text)
    return {
        "$or": [
            {"title": pattern},
            {"description": pattern},
            {"category": pattern},
            {"location": pattern},
        ]
    }


def resolve_location(location: Optional[str], city: Optional[str], region: Optional[str]) -> str:
    """Explicit location wins; otherwise "<city>, <region>" when both are given."""
    if location and location.strip():
        return location.strip()
    if city and city.strip() and region and region.strip():
        return f"{city.strip()}, {region.strip()}"
    return ""


def serialize_task(document: Dict[str, Any], client: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    data = TaskDocument.model_validate(document).model_dump(by_alias=True)
    if client is not None:
        data["client"] = public_user(client)
    return data


class TaskService:
    def __init__(self, tasks, users=None, media: Optional[MediaStorage] = None):
        self.tasks = tasks
        self.users = users
        self.media = media or MediaStorage()

    async def _clients_by_id(self, documents: List[Dict[str, Any]]) -> Dict[Any, Dict[str, Any]]:
        if self.users is None:
            return {}
        ids = list({doc["client_id"] for doc in documents if doc.get("client_id")})
        if not ids:
            return {}
        cursor = self.users.find({"_id": {"$in": ids}}, CLIENT_FIELDS)
        return {user["_id"]: user async for user in cursor}

    async def _serialize_all(self, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        clients = await self._clients_by_id(documents)
        return [serialize_task(doc, clients.get(doc.get("client_id"))) for doc in documents]

    async def _get_owned(self, task_id: str, user_id: str) -> Dict[str, Any]:
        oid = to_object_id(task_id)
        task = await self.tasks.find_one({"_id": oid}) if oid else None
        if not task:
            raise ResourceNotFoundError("Task not found")
        if str(task.get("client_id")) != str(user_id):
            raise PermissionDeniedError("Not authorized to modify this task")
        return task

    async def list_tasks(self, query: Dict[str, Any], pagination: Pagination) -> Tuple[List[Dict[str, Any]], int]:
        """
        Returns one page of tasks (newest first) and the total match count.
        The two reads run concurrently and are not a consistent snapshot.
        """
        cursor = (
            self.tasks.find(query)
            .sort("created_at", DESCENDING)
            .skip(pagination.skip)
            .limit(pagination.limit)
        )
        documents, total = await asyncio.gather(
            cursor.to_list(length=pagination.limit),
            self.tasks.count_documents(query),
        )
        return await self._serialize_all(documents), total

    async def search_tasks(self, text: str, limit: int) -> List[Dict[str, Any]]:
        if not text or not text.strip():
            return []
        cursor = self.tasks.find(build_search_query(text)).sort("created_at", DESCENDING).limit(limit)
        return [serialize_task(doc) for doc in await cursor.to_list(length=limit)]

    async def jobs_by_region(self) -> Dict[str, Any]:
        """Open tasks grouped onto the canonical region list."""
        cursor = self.tasks.find({"status": "open"}, {"region": 1, "main_category": 1, "category": 1})
        return aggregation.group_tasks_by_region(await cursor.to_list(length=None))

    async def list_for_client(self, user_id: str) -> List[Dict[str, Any]]:
        cursor = self.tasks.find({"client_id": to_object_id(user_id)}).sort("created_at", DESCENDING)
        return await self._serialize_all(await cursor.to_list(length=None))

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        oid = to_object_id(task_id)
        task = await self.tasks.find_one({"_id": oid}) if oid else None
        if not task:
            raise ResourceNotFoundError("Task not found")
        return (await self._serialize_all([task]))[0]

    async def create_task(
        self,
        client_id: str,
        fields: Dict[str, Any],
        images: Optional[List[UploadFile]] = None,
    ) -> Dict[str, Any]:
        """
        Creates a task for ``client_id``. Required-field checks happen at
        the route; the document model enforces the remaining constraints.
        """
        uploads = [image for image in images or [] if has_upload(image)]
        if len(uploads) > MAX_TASK_IMAGES:
            raise ValidationError(f"A task can have at most {MAX_TASK_IMAGES} images")

        with LogContext(user_id=client_id):
            now = utcnow()
            whatsapp = (fields.get("whatsapp") or "").strip()
            document = TaskDocument(
                title=fields["title"],
                main_category=fields.get("main_category") or "",
                category=clean_list(fields.get("category")),
                description=fields["description"],
                city=fields.get("city") or "",
                region=fields.get("region") or "",
                district=fields.get("district") or "",
                location=fields["location"],
                due_date=fields["due_date"],
                budget={
                    "min": parse_float(fields.get("min_budget")),
                    "max": parse_float(fields.get("max_budget")),
                },
                contact={
                    "phone": fields["phone"],
                    "whatsapp": whatsapp,
                    "additional_contact": whatsapp or (fields.get("additional_contact") or "").strip(),
                },
                client_id=client_id,
                created_at=now,
                updated_at=now,
            )

            document.images = await self.media.save_many(uploads, TASKS, "task")
            data = document.to_mongo()
            try:
                result = await self.tasks.insert_one(data)
            except Exception:
                await self.media.delete_many(document.images)
                raise
            data["_id"] = result.inserted_id
            logger.info(f"Task created: {result.inserted_id}")
            return serialize_task(data)

    async def update_task(
        self,
        task_id: str,
        user_id: str,
        fields: Dict[str, Any],
        existing_images: Optional[List[str]] = None,
        new_images: Optional[List[UploadFile]] = None,
    ) -> Dict[str, Any]:
        """
        Owner-only edit. Blank fields keep their stored value.

        ``existing_images`` lists the stored images to keep (None keeps all);
        images dropped from it are deleted from storage.
        """
        task = await self._get_owned(task_id, user_id)
        current_images = task.get("images", [])
        kept = current_images if existing_images is None else [
            image for image in clean_list(existing_images) if image in current_images
        ]
        uploads = [image for image in new_images or [] if has_upload(image)]
        if len(kept) + len(uploads) > MAX_TASK_IMAGES:
            raise ValidationError(f"A task can have at most {MAX_TASK_IMAGES} images")

        merged = dict(task)
        for name in ("title", "description", "city", "region", "district"):
            value = fields.get(name)
            if value is not None and str(value).strip():
                merged[name] = str(value).strip()
        categories = clean_list(fields.get("category"))
        if categories:
            merged["category"] = categories
        if fields.get("main_category"):
            merged["main_category"] = fields["main_category"].strip()
        if fields.get("city") and fields.get("region"):
            merged["location"] = resolve_location(None, merged["city"], merged["region"])
        if fields.get("due_date"):
            merged["due_date"] = fields["due_date"]

        budget = dict(task.get("budget") or {})
        if fields.get("min_budget"):
            budget["min"] = parse_float(fields["min_budget"], budget.get("min", 0))
        if fields.get("max_budget"):
            budget["max"] = parse_float(fields["max_budget"], budget.get("max", 0))
        merged["budget"] = budget

        contact = dict(task.get("contact") or {})
        if fields.get("phone"):
            contact["phone"] = fields["phone"].strip()
        if fields.get("whatsapp"):
            contact["whatsapp"] = fields["whatsapp"].strip()
            contact["additional_contact"] = fields["whatsapp"].strip()
        merged["contact"] = contact
        merged["images"] = kept
        merged["updated_at"] = utcnow()

        document = TaskDocument.model_validate(merged)
        added = await self.media.save_many(uploads, TASKS, "task")
        document.images = kept + added

        data = document.to_mongo()
        data.pop("_id", None)
        updated = await self.tasks.find_one_and_update(
            {"_id": task["_id"]},
            {"$set": data},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            await self.media.delete_many(added)
            raise ResourceNotFoundError("Task not found")
        await self.media.delete_many(image for image in current_images if image not in kept)

        logger.info(f"Task updated: {task_id}", extra={"task_id": task_id})
        return serialize_task(updated)

    async def set_status(self, task_id: str, user_id: str, status: str) -> Dict[str, Any]:
        """Sets the status; completing stamps completed_at, reopening clears it."""
        if status not in TASK_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}")
        task = await self._get_owned(task_id, user_id)

        now = utcnow()
        completed_at = now if status == "completed" else None
        updated = await self.tasks.find_one_and_update(
            {"_id": task["_id"]},
            {"$set": {"status": status, "completed_at": completed_at, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ResourceNotFoundError("Task not found")
        logger.info(f"Task {task_id} status -> {status}", extra={"task_id": task_id})
        return {
            "_id": str(updated["_id"]),
            "title": updated["title"],
            "status": updated["status"],
            "completedAt": updated.get("completed_at"),
            "updatedAt": updated.get("updated_at"),
        }

    async def delete_task(self, task_id: str, user_id: str) -> None:
        task = await self._get_owned(task_id, user_id)
        await self.tasks.delete_one({"_id": task["_id"]})
        await self.media.delete_many(task.get("images", []))
        logger.info(f"Task deleted: {task_id}", extra={"task_id": task_id})
