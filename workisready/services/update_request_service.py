"""
workisready/services/update_request_service.py

Purpose: Moderated provider edits

- Providers submit partial change-sets (+ new sample files)
- Admins approve (apply to the profile) or reject
- Requests leave "pending" exactly once
"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile
from pydantic import ValidationError as SchemaError
from pymongo import DESCENDING, ReturnDocument

from utils.constants import DEFAULT_REJECTION_REASON, NO_CHANGES_MESSAGE
from utils.time_utils import utcnow
from utils.validation_utils import clean_list, to_object_id
from workisready.core.config import settings
from workisready.core.errors import summarize_errors
from workisready.core.exceptions import ResourceNotFoundError, UpdateApplyError, ValidationError
from workisready.core.logging import LogContext, get_logger
from workisready.models.provider import ProviderDocument
from workisready.models.update_request import ProviderChanges, ProviderUpdateRequest
from workisready.services.media_service import PROVIDERS, MediaStorage, has_upload
from workisready.services.provider_service import merge_sample_work, serialize_provider

logger = get_logger(__name__)


def build_changes(
    category: Optional[List[str]] = None,
    bio: Optional[str] = None,
    skills: Optional[List[str]] = None,
    experience: Optional[str] = None,
    hourly_rate: Optional[str] = None,
    availability: Optional[str] = None,
) -> ProviderChanges:
    """
    Collects the submitted fields. Blank values and empty lists count as
    "not submitted".
    """
    changes: Dict[str, Any] = {}
    if clean_list(category):
        changes["category"] = clean_list(category)
    if clean_list(skills):
        changes["skills"] = clean_list(skills)
    for name, value in (
        ("bio", bio),
        ("experience", experience),
        ("hourly_rate", hourly_rate),
        ("availability", availability),
    ):
        if value is not None and value.strip():
            changes[name] = value.strip()
    return ProviderChanges(**changes)


def apply_changes(
    provider: Dict[str, Any],
    changes: Dict[str, Any],
    new_files: List[str],
    limit: int,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Copies each present field onto the provider and merges the new files.

    Returns:
        (field updates to persist, gallery files that were dropped)
    """
    updates = {name: value for name, value in changes.items() if value is not None}
    dropped: List[str] = []
    if new_files:
        gallery, dropped = merge_sample_work(provider.get("sample_work", []), new_files, limit)
        updates["sample_work"] = gallery
    return updates, dropped


def serialize_request(document: Dict[str, Any], provider: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    data = ProviderUpdateRequest.model_validate(document).model_dump(by_alias=True, exclude_none=True)
    if provider is not None:
        data["provider"] = serialize_provider(provider)
    return data


class UpdateRequestService:
    def __init__(self, requests, providers, media: Optional[MediaStorage] = None):
        self.requests = requests
        self.providers = providers
        self.media = media or MediaStorage()

    async def _find_pending(self, request_id: str) -> Dict[str, Any]:
        oid = to_object_id(request_id)
        request = await self.requests.find_one({"_id": oid}) if oid else None
        if not request:
            raise ResourceNotFoundError("Update request not found")
        if request.get("status") != "pending":
            raise ValidationError(
                f"Update request has already been {request.get('status')}",
                details={"status": request.get("status")},
            )
        return request

    async def submit(
        self,
        user_id: str,
        changes: ProviderChanges,
        sample_work: Optional[List[UploadFile]] = None,
    ) -> str:
        """
        Queues a change-set for the caller's provider profile.

        Returns:
            The new request id

        Raises:
            ResourceNotFoundError: The user has no provider profile
            ValidationError: Nothing to change
        """
        with LogContext(user_id=user_id):
            provider = await self.providers.find_one({"user_id": to_object_id(user_id)}, {"_id": 1})
            if not provider:
                raise ResourceNotFoundError("Provider profile not found")

            files = [file for file in sample_work or [] if has_upload(file)]
            if not changes.present() and not files:
                raise ValidationError(NO_CHANGES_MESSAGE)
            if len(files) > settings.SAMPLE_WORK_LIMIT:
                raise ValidationError(f"Maximum {settings.SAMPLE_WORK_LIMIT} sample work files allowed")

            paths = await self.media.save_many(files, PROVIDERS, "sampleWork", documents=True)
            request = ProviderUpdateRequest(
                provider_id=str(provider["_id"]),
                user_id=user_id,
                changes=changes,
                new_sample_files=paths,
                created_at=utcnow(),
            )
            try:
                result = await self.requests.insert_one(request.to_mongo())
            except Exception:
                await self.media.delete_many(paths)
                raise

            logger.info(
                f"Update request {result.inserted_id} submitted",
                extra={"provider_id": str(provider["_id"])},
            )
            return str(result.inserted_id)

    async def list_pending(self) -> List[Dict[str, Any]]:
        """Pending requests, newest first, each with its provider embedded."""
        cursor = self.requests.find({"status": "pending"}).sort("created_at", DESCENDING)
        requests = await cursor.to_list(length=None)
        provider_ids = list({request["provider_id"] for request in requests})
        providers = {}
        if provider_ids:
            found = await self.providers.find({"_id": {"$in": provider_ids}}).to_list(length=None)
            providers = {provider["_id"]: provider for provider in found}
        return [serialize_request(request, providers.get(request["provider_id"])) for request in requests]

    async def approve(self, request_id: str, admin_id: str) -> Dict[str, Any]:
        """
        Applies a pending request to its provider, then marks it approved.

        The provider is written first; if that fails the request stays
        pending. Files already in the gallery are not appended twice.
        """
        request = await self._find_pending(request_id)
        provider = await self.providers.find_one({"_id": request["provider_id"]})
        if not provider:
            raise ResourceNotFoundError("Provider not found")

        with LogContext(provider_id=str(provider["_id"])):
            updates, dropped = apply_changes(
                provider,
                request.get("changes") or {},
                request.get("new_sample_files") or [],
                settings.SAMPLE_WORK_LIMIT,
            )
            try:
                document = ProviderDocument.model_validate({**provider, **updates})
            except SchemaError as e:
                logger.error(f"Update request {request_id} could not be applied: {e.error_count()} errors")
                raise UpdateApplyError(details=summarize_errors(e.errors())) from e
            if "experience" in updates:
                updates["experience_rank"] = document.experience_rank

            now = utcnow()
            updated = await self.providers.find_one_and_update(
                {"_id": provider["_id"]},
                {"$set": {**updates, "updated_at": now}},
                return_document=ReturnDocument.AFTER,
            )
            if updated is None:
                raise ResourceNotFoundError("Provider not found")
            await self.requests.update_one(
                {"_id": request["_id"], "status": "pending"},
                {"$set": {
                    "status": "approved",
                    "processed_at": now,
                    "processed_by": to_object_id(admin_id),
                }},
            )
            await self.media.delete_many(dropped)

            logger.info(f"Update request {request_id} approved")
            return serialize_provider(updated)

    async def reject(self, request_id: str, admin_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Marks a pending request rejected; the provider is not touched."""
        request = await self._find_pending(request_id)
        now = utcnow()
        changes = {
            "status": "rejected",
            "rejection_reason": (reason or "").strip() or DEFAULT_REJECTION_REASON,
            "processed_at": now,
            "processed_by": to_object_id(admin_id),
        }
        await self.requests.update_one({"_id": request["_id"], "status": "pending"}, {"$set": changes})
        await self.media.delete_many(request.get("new_sample_files") or [])

        logger.info(f"Update request {request_id} rejected")
        return serialize_request({**request, **changes})
