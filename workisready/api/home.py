"""
workisready/api/home.py

Purpose: Homepage endpoints

- Public sections and stats
- Admin curation of each section, with candidate search
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status

from workisready.api.dependencies import get_home_service, require_admin
from workisready.schemas.requests import HomeEntryCreate, UpdateOrderRequest
from workisready.services.home_service import HomeService

router = APIRouter(prefix="/home", tags=["home"])


@router.get("/featured-providers")
async def featured_providers(home: HomeService = Depends(get_home_service)):
    providers = await home.featured_providers()
    return {"success": True, "providers": providers, "count": len(providers)}


@router.get("/urgent-work")
async def urgent_work(home: HomeService = Depends(get_home_service)):
    return {"success": True, "tasks": await home.urgent_work()}


@router.get("/popular-jobs")
async def popular_jobs(home: HomeService = Depends(get_home_service)):
    return {"success": True, "jobs": await home.popular_jobs()}


@router.get("/popular-cities")
async def popular_cities(home: HomeService = Depends(get_home_service)):
    return {"success": True, "cities": await home.popular_cities()}


@router.get("/stats")
async def stats(home: HomeService = Depends(get_home_service)):
    return {"success": True, **await home.stats()}


# ============================================================
# ADMIN
# ============================================================

@router.post("/admin/update-order")
async def update_order(
    payload: UpdateOrderRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    await home.update_order(payload.section, [item.id for item in payload.items])
    return {"success": True, "message": "Order updated"}


@router.get("/admin/search/tasks")
async def search_tasks(
    q: str = "",
    section: Optional[str] = None,
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    return {"success": True, "results": await home.search_tasks(q, section)}


@router.get("/admin/search/providers")
async def search_providers(
    q: str = "",
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    return {"success": True, "results": await home.search_providers(q)}


@router.get("/admin/{section}")
async def list_entries(
    section: str,
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    return {"success": True, "items": await home.list_entries(section)}


@router.post("/admin/{section}", status_code=status.HTTP_201_CREATED)
async def add_entry(
    section: str,
    payload: HomeEntryCreate,
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    entry = await home.add_entry(section, payload.model_dump(exclude_none=True))
    return {"success": True, "item": entry}


@router.delete("/admin/{section}/{entry_id}")
async def remove_entry(
    section: str,
    entry_id: str,
    admin: Dict[str, Any] = Depends(require_admin),
    home: HomeService = Depends(get_home_service),
):
    await home.remove_entry(section, entry_id)
    return {"success": True, "message": "Entry removed"}
