"""
workisready/api/admin_providers.py

Purpose: Provider moderation (admin only)

- Paginated provider management list
- Edit any field, delete, approve, feature (single and bulk)
- Review queue for provider update requests
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from utils.constants import (
    PROVIDER_UPDATED_MESSAGE,
    UPDATE_REQUEST_APPROVED_MESSAGE,
    UPDATE_REQUEST_REJECTED_MESSAGE,
)
from utils.pagination_utils import Pagination, compute_total_pages
from workisready.api.dependencies import (
    get_pagination,
    get_provider_service,
    get_update_request_service,
    require_admin,
)
from workisready.schemas.requests import (
    ApprovalToggle,
    BulkApproval,
    BulkFeature,
    BulkIds,
    FeatureToggle,
    RejectRequest,
)
from workisready.services.provider_service import ProviderService, build_admin_query
from workisready.services.update_request_service import UpdateRequestService

router = APIRouter(prefix="/admin/providers", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_providers(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "newest",
    pagination: Pagination = Depends(get_pagination),
    providers: ProviderService = Depends(get_provider_service),
):
    query = build_admin_query(search, status, category)
    items, total = await providers.admin_list(query, sort, pagination)
    return {
        "success": True,
        "providers": items,
        "total": total,
        "page": pagination.page,
        "totalPages": compute_total_pages(total, pagination.limit),
    }


# ============================================================
# UPDATE REQUESTS
# ============================================================

@router.get("/update-requests")
async def pending_update_requests(requests: UpdateRequestService = Depends(get_update_request_service)):
    return {"success": True, "requests": await requests.list_pending()}


@router.post("/update-requests/{request_id}/approve")
async def approve_update_request(
    request_id: str,
    admin: Dict[str, Any] = Depends(require_admin),
    requests: UpdateRequestService = Depends(get_update_request_service),
):
    provider = await requests.approve(request_id, str(admin["_id"]))
    return {"success": True, "message": UPDATE_REQUEST_APPROVED_MESSAGE, "provider": provider}


@router.post("/update-requests/{request_id}/reject")
async def reject_update_request(
    request_id: str,
    payload: Optional[RejectRequest] = None,
    admin: Dict[str, Any] = Depends(require_admin),
    requests: UpdateRequestService = Depends(get_update_request_service),
):
    reason = payload.reason if payload else None
    request = await requests.reject(request_id, str(admin["_id"]), reason)
    return {"success": True, "message": UPDATE_REQUEST_REJECTED_MESSAGE, "request": request}


# ============================================================
# BULK
# ============================================================

@router.patch("/bulk-approve")
async def bulk_approve(payload: BulkApproval, providers: ProviderService = Depends(get_provider_service)):
    updated = await providers.bulk_set_approval(payload.ids, payload.is_approved)
    return {
        "success": True,
        "message": f"{len(updated)} providers updated",
        "providers": updated,
    }


@router.patch("/bulk-feature")
async def bulk_feature(payload: BulkFeature, providers: ProviderService = Depends(get_provider_service)):
    count = await providers.bulk_set_featured(payload.ids, payload.is_featured)
    state = "featured" if payload.is_featured else "unfeatured"
    return {"success": True, "message": f"{count} providers {state}", "count": count}


@router.delete("/bulk-delete")
async def bulk_delete(payload: BulkIds, providers: ProviderService = Depends(get_provider_service)):
    deleted = await providers.bulk_delete(payload.ids)
    return {"success": True, "message": f"{deleted} providers deleted", "deletedCount": deleted}


# ============================================================
# SINGLE PROVIDER
# ============================================================

@router.get("/{provider_id}")
async def get_provider(provider_id: str, providers: ProviderService = Depends(get_provider_service)):
    return {"success": True, "provider": await providers.get_provider(provider_id)}


@router.put("/{provider_id}")
async def update_provider(
    provider_id: str,
    first_name: Optional[str] = Form(None, alias="firstName"),
    surname: Optional[str] = Form(None),
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
    is_approved: Optional[bool] = Form(None, alias="isApproved"),
    removed_samples: Optional[List[str]] = Form(None, alias="removedSamples"),
    profile_pic: Optional[UploadFile] = File(None, alias="profilePic"),
    sample_work: Optional[List[UploadFile]] = File(None, alias="sampleWork"),
    providers: ProviderService = Depends(get_provider_service),
):
    fields = {
        "first_name": first_name,
        "surname": surname,
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
        "email": email,
        "is_approved": is_approved,
    }
    provider = await providers.admin_update(provider_id, fields, removed_samples, profile_pic, sample_work)
    return {"success": True, "message": PROVIDER_UPDATED_MESSAGE, "provider": provider}


@router.delete("/{provider_id}")
async def delete_provider(provider_id: str, providers: ProviderService = Depends(get_provider_service)):
    await providers.delete_provider(provider_id)
    return {"success": True, "message": "Provider deleted successfully"}


@router.patch("/{provider_id}/approve")
async def approve_provider(
    provider_id: str,
    payload: Optional[ApprovalToggle] = None,
    providers: ProviderService = Depends(get_provider_service),
):
    """Sets ``isApproved`` when given, otherwise toggles it."""
    provider = await providers.set_approval(provider_id, payload.is_approved if payload else None)
    state = "approved" if provider["isApproved"] else "unapproved"
    return {"success": True, "message": f"Provider {state}", "provider": provider}


@router.patch("/{provider_id}/feature")
async def feature_provider(
    provider_id: str,
    payload: Optional[FeatureToggle] = None,
    providers: ProviderService = Depends(get_provider_service),
):
    provider = await providers.set_featured(provider_id, payload.is_featured if payload else None)
    state = "featured" if provider["isFeatured"] else "unfeatured"
    return {"success": True, "message": f"Provider {state}", "provider": provider}
