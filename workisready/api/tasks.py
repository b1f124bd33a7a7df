"""
workisready/api/tasks.py

Purpose: Task endpoints

- Public listing (filters + pagination), search and detail
- Authenticated create (multipart with images)
- Owner-only edit, status change and delete
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from utils.constants import (
    TASK_CREATED_MESSAGE,
    TASK_DELETED_MESSAGE,
    TASK_STATUS_UPDATED_MESSAGE,
    TASK_UPDATED_MESSAGE,
)
from utils.pagination_utils import Pagination, compute_total_pages
from utils.validation_utils import find_missing_fields, parse_datetime
from workisready.api.dependencies import get_current_user, get_pagination, get_task_service
from workisready.core.exceptions import ValidationError
from workisready.core.logging import get_logger
from workisready.schemas.requests import TaskStatusUpdate
from workisready.services.task_service import TaskService, build_task_query, resolve_location

logger = get_logger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])

SEARCH_LIMIT = 50


def _due_date(value: Optional[str]):
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError("Invalid due date", details={"dueDate": value})
    return parsed


@router.get("")
async def list_tasks(
    region: Optional[str] = None,
    task_status: Optional[str] = Query(None, alias="status"),
    main_category: Optional[str] = Query(None, alias="mainCategory"),
    category: Optional[str] = None,
    city: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    tasks: TaskService = Depends(get_task_service),
):
    query = build_task_query(region, task_status, main_category, category, city)
    items, total = await tasks.list_tasks(query, pagination)
    return {
        "success": True,
        "tasks": items,
        "total": total,
        "page": pagination.page,
        "totalPages": compute_total_pages(total, pagination.limit),
    }


@router.get("/search")
async def search_tasks(
    q: str = "",
    tasks: TaskService = Depends(get_task_service),
):
    return {"success": True, "tasks": await tasks.search_tasks(q, SEARCH_LIMIT)}


@router.get("/user/my-tasks")
async def my_tasks(
    user: Dict[str, Any] = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    return {"success": True, "tasks": await tasks.list_for_client(str(user["_id"]))}


@router.get("/{task_id}")
async def get_task(task_id: str, tasks: TaskService = Depends(get_task_service)):
    return {"success": True, "task": await tasks.get_task(task_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    title: Optional[str] = Form(None),
    main_category: Optional[str] = Form(None, alias="mainCategory"),
    category: Optional[List[str]] = Form(None),
    description: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    due_date: Optional[str] = Form(None, alias="dueDate"),
    min_budget: Optional[str] = Form(None, alias="minBudget"),
    max_budget: Optional[str] = Form(None, alias="maxBudget"),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    additional_contact: Optional[str] = Form(None, alias="additionalContact"),
    images: Optional[List[UploadFile]] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """
    Creates a task. ``location`` may be omitted when both ``city`` and
    ``region`` are sent; it is then derived as "<city>, <region>".
    """
    location = resolve_location(location, city, region)
    missing = find_missing_fields({
        "title": title,
        "category": category,
        "description": description,
        "location": location,
        "dueDate": due_date,
        "phone": phone,
    })
    if missing:
        logger.info(f"Task rejected, missing fields: {missing}")
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"missingFields": missing},
        )

    fields = {
        "title": title,
        "main_category": main_category,
        "category": category,
        "description": description,
        "city": city,
        "region": region,
        "district": district,
        "location": location,
        "due_date": _due_date(due_date),
        "min_budget": min_budget,
        "max_budget": max_budget,
        "phone": phone,
        "whatsapp": whatsapp,
        "additional_contact": additional_contact,
    }
    task = await tasks.create_task(str(user["_id"]), fields, images)
    return {"success": True, "message": TASK_CREATED_MESSAGE, "task": task}


@router.put("/{task_id}/status")
async def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    task = await tasks.set_status(task_id, str(user["_id"]), payload.status)
    return {"success": True, "message": TASK_STATUS_UPDATED_MESSAGE, "task": task}


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    title: Optional[str] = Form(None),
    main_category: Optional[str] = Form(None, alias="mainCategory"),
    category: Optional[List[str]] = Form(None),
    description: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    due_date: Optional[str] = Form(None, alias="dueDate"),
    min_budget: Optional[str] = Form(None, alias="minBudget"),
    max_budget: Optional[str] = Form(None, alias="maxBudget"),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    existing_images: Optional[List[str]] = Form(None, alias="existingImages"),
    new_images: Optional[List[UploadFile]] = File(None, alias="newImages"),
    user: Dict[str, Any] = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """
    Owner-only edit. ``existingImages`` lists the stored images to keep;
    when it is absent every stored image is kept.
    """
    fields = {
        "title": title,
        "main_category": main_category,
        "category": category,
        "description": description,
        "city": city,
        "region": region,
        "district": district,
        "due_date": _due_date(due_date),
        "min_budget": min_budget,
        "max_budget": max_budget,
        "phone": phone,
        "whatsapp": whatsapp,
    }
    task = await tasks.update_task(task_id, str(user["_id"]), fields, existing_images, new_images)
    return {"success": True, "message": TASK_UPDATED_MESSAGE, "task": task}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    await tasks.delete_task(task_id, str(user["_id"]))
    return {"success": True, "message": TASK_DELETED_MESSAGE}
