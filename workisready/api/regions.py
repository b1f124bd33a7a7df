"""
workisready/api/regions.py

Purpose: Region dashboard

- Open jobs per Ghana region with category breakdown
"""

from fastapi import APIRouter, Depends

from workisready.api.dependencies import get_task_service
from workisready.services.task_service import TaskService

router = APIRouter(prefix="/regions", tags=["regions"])


@router.get("/jobs-by-region")
async def jobs_by_region(tasks: TaskService = Depends(get_task_service)):
    return {"success": True, **await tasks.jobs_by_region()}
