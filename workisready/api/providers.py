"""
workisready/api/providers.py

Purpose: Provider endpoints

- Public listing, search, detail and region/category discovery
- Registration and self-service profile edits
- Reviews
- Update requests for moderated fields
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from utils.constants import (
    PROVIDER_REGISTERED_MESSAGE,
    PROVIDER_UPDATED_MESSAGE,
    REVIEW_ADDED_MESSAGE,
    SAMPLE_REMOVED_MESSAGE,
    UPDATE_REQUEST_SUBMITTED_MESSAGE,
)
from utils.pagination_utils import Pagination, compute_total_pages
from workisready.api.dependencies import (
    get_current_user,
    get_pagination,
    get_provider_service,
    get_update_request_service,
)
from workisready.core.exceptions import ValidationError
from workisready.schemas.requests import ReviewCreate
from workisready.services.provider_service import ProviderService, build_provider_query
from workisready.services.update_request_service import UpdateRequestService, build_changes

router = APIRouter(prefix="/providers", tags=["providers"])

SEARCH_LIMIT = 50


def _page(items: List[Dict[str, Any]], total: int, pagination: Pagination) -> Dict[str, Any]:
    return {
        "success": True,
        "providers": items,
        "total": total,
        "page": pagination.page,
        "totalPages": compute_total_pages(total, pagination.limit),
    }


# ============================================================
# PUBLIC READS
# ============================================================

@router.get("")
async def list_providers(
    region: Optional[str] = None,
    category: Optional[str] = None,
    main_category: Optional[str] = Query(None, alias="mainCategory"),
    city: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating"),
    pagination: Pagination = Depends(get_pagination),
    providers: ProviderService = Depends(get_provider_service),
):
    query = build_provider_query(region, category, main_category, city, min_rating)
    items, total = await providers.list_providers(query, pagination)
    return _page(items, total, pagination)


@router.get("/search")
async def search_providers(q: str = "", providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, "providers": await providers.search_providers(q, SEARCH_LIMIT)}


@router.get("/check")
async def check_registration(
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    provider = await providers.find_for_user(str(user["_id"]))
    return {"success": True, "exists": provider is not None, "provider": provider}


@router.get("/me")
async def my_provider_profile(
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    return {"success": True, "provider": await providers.get_for_user(str(user["_id"]))}


@router.get("/providers-by-region")
async def providers_by_region(providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, **await providers.providers_by_region()}


@router.get("/region-category")
async def providers_in_region_category(
    region: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "rating",
    pagination: Pagination = Depends(get_pagination),
    providers: ProviderService = Depends(get_provider_service),
):
    """
    Approved providers in a region whose categories fall under ``category``
    (a main category expands to all of its sub-categories).
    """
    items, total = await providers.region_category(region, category, pagination, sort)
    return _page(items, total, pagination)


@router.get("/region/{region}/category-counts")
async def region_category_counts(region: str, providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, **await providers.region_category_counts(region)}


@router.get("/region/{region}/categories")
async def region_categories(region: str, providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, "region": region, "categories": await providers.region_categories(region)}


# ============================================================
# SELF-SERVICE
# ============================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def register_provider(
    fname: Optional[str] = Form(None),
    sname: Optional[str] = Form(None),
    other_name: Optional[str] = Form(None, alias="otherName"),
    city: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    category: Optional[List[str]] = Form(None),
    skills: Optional[List[str]] = Form(None),
    bio: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    hourly_rate: Optional[str] = Form(None, alias="hourlyRate"),
    availability: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    profile_pic: Optional[UploadFile] = File(None, alias="profilePic"),
    sample_work: Optional[List[UploadFile]] = File(None, alias="sampleWork"),
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    if not (fname and fname.strip()) or not (sname and sname.strip()):
        raise ValidationError("First name and surname are required.")

    fields = {
        "fname": fname,
        "sname": sname,
        "other_name": other_name,
        "city": city,
        "region": region,
        "district": district,
        "category": category,
        "skills": skills,
        "bio": bio,
        "experience": experience,
        "hourly_rate": hourly_rate,
        "availability": availability,
        "phone": phone,
        "whatsapp": whatsapp,
        "email": email or user.get("email"),
    }
    provider = await providers.register(str(user["_id"]), fields, profile_pic, sample_work)
    return {"success": True, "message": PROVIDER_REGISTERED_MESSAGE, "provider": provider}


@router.put("/update")
async def update_provider_profile(
    fname: Optional[str] = Form(None),
    sname: Optional[str] = Form(None),
    other_name: Optional[str] = Form(None, alias="otherName"),
    city: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    profile_pic: Optional[UploadFile] = File(None, alias="profilePic"),
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    """Unmoderated fields only; the rest goes through /update-request."""
    fields = {
        "fname": fname,
        "sname": sname,
        "other_name": other_name,
        "city": city,
        "region": region,
        "district": district,
        "phone": phone,
        "whatsapp": whatsapp,
        "email": email,
    }
    provider = await providers.update_profile(str(user["_id"]), fields, profile_pic)
    return {"success": True, "message": PROVIDER_UPDATED_MESSAGE, "provider": provider}


@router.delete("/sample/{index}")
async def remove_sample(
    index: int,
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    provider = await providers.remove_sample(str(user["_id"]), index)
    return {"success": True, "message": SAMPLE_REMOVED_MESSAGE, "provider": provider}


@router.post("/update-request", status_code=status.HTTP_201_CREATED)
async def submit_update_request(
    category: Optional[List[str]] = Form(None),
    bio: Optional[str] = Form(None),
    skills: Optional[List[str]] = Form(None),
    experience: Optional[str] = Form(None),
    hourly_rate: Optional[str] = Form(None, alias="hourlyRate"),
    availability: Optional[str] = Form(None),
    sample_work: Optional[List[UploadFile]] = File(None, alias="sampleWork"),
    user: Dict[str, Any] = Depends(get_current_user),
    requests: UpdateRequestService = Depends(get_update_request_service),
):
    changes = build_changes(category, bio, skills, experience, hourly_rate, availability)
    request_id = await requests.submit(str(user["_id"]), changes, sample_work)
    return {"success": True, "message": UPDATE_REQUEST_SUBMITTED_MESSAGE, "requestId": request_id}


@router.get("/{provider_id}")
async def get_provider(provider_id: str, providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, "provider": await providers.get_provider(provider_id)}


@router.post("/{provider_id}/review", status_code=status.HTTP_201_CREATED)
async def add_review(
    provider_id: str,
    payload: ReviewCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    providers: ProviderService = Depends(get_provider_service),
):
    provider = await providers.add_review(provider_id, user, payload.rating, payload.comment)
    return {"success": True, "message": REVIEW_ADDED_MESSAGE, "provider": provider}
