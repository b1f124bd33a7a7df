"""
workisready/services/provider_service.py

Purpose: Provider profiles

- Public listing, search and region/category discovery
- One-time registration with profile picture and sample work
- Self-service edits of unmoderated fields
- Reviews (one per user) and rating recalculation
- Admin moderation: approve, feature, edit, delete
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from utils.constants import (
    ALREADY_REVIEWED_MESSAGE,
    FEATURED_DAYS,
    PROVIDER_ALREADY_REGISTERED_MESSAGE,
)
from utils.pagination_utils import Pagination
from utils.time_utils import expires_in, utcnow
from utils.validation_utils import (
    clean_list,
    contains_pattern,
    exact_pattern,
    normalize_region,
    region_pattern,
    to_object_id,
)
from workisready.core.config import settings
from workisready.core.exceptions import ResourceNotFoundError, ValidationError
from workisready.core.logging import LogContext, get_logger
from workisready.models.provider import ProviderDocument, calculate_average_rating
from workisready.services import aggregation
from workisready.services.category_service import category_filter
from workisready.services.media_service import PROVIDERS, MediaStorage, has_upload

logger = get_logger(__name__)

# Public sort options for region/category browsing
PUBLIC_SORTS = {
    "rating": [("average_rating", DESCENDING)],
    "experience": [("experience_rank", DESCENDING), ("average_rating", DESCENDING)],
    "newest": [("created_at", DESCENDING)],
}

ADMIN_SORTS = {
    "newest": [("created_at", DESCENDING)],
    "oldest": [("created_at", ASCENDING)],
    "name": [("first_name", ASCENDING)],
    "rating": [("average_rating", DESCENDING)],
}

# Fields a provider may change without admin review
SELF_SERVICE_FIELDS = ("city", "region", "district", "phone", "whatsapp", "email")

# Plain fields an admin may overwrite directly
ADMIN_TEXT_FIELDS = (
    "first_name", "surname", "other_name", "city", "region", "district",
    "bio", "experience", "hourly_rate", "availability", "phone", "whatsapp", "email",
)

SAMPLE_FIELDS = {
    "full_name": 1, "profile_pic": 1, "average_rating": 1, "experience": 1, "category": 1,
}


def build_provider_query(
    region: Optional[str] = None,
    category: Optional[str] = None,
    main_category: Optional[str] = None,
    city: Optional[str] = None,
    min_rating: Optional[float] = None,
    approved_only: bool = True,
) -> Dict[str, Any]:
    """
    Builds the filter for public provider listings.

    ``main_category`` expands to every registered sub-category; ``category``
    matches one label. Both ignore case.
    """
    query: Dict[str, Any] = {}
    if approved_only:
        query["is_approved"] = True
    if region and normalize_region(region):
        query["region"] = region_pattern(region)
    if city and city.strip():
        query["city"] = exact_pattern(city)

    conditions = []
    if main_category and main_category.strip():
        conditions.append({"category": category_filter(main_category)})
    if category and category.strip():
        conditions.append({"category": exact_pattern(category)})
    if len(conditions) == 1:
        query.update(conditions[0])
    elif conditions:
        query["$and"] = conditions

    if min_rating:
        query["average_rating"] = {"$gte": min_rating}
    return query


def build_provider_search(text: str, approved_only: bool = True) -> Dict[str, Any]:
    pattern = contains_pattern(text)
    query: Dict[str, Any] = {
        "$or": [
            {"first_name": pattern},
            {"surname": pattern},
            {"category": pattern},
            {"skills": {"$elemMatch": pattern}},
        ]
    }
    if approved_only:
        query["is_approved"] = True
    return query


def build_admin_query(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if search and search.strip():
        pattern = contains_pattern(search)
        query["$or"] = [
            {field: pattern}
            for field in ("first_name", "surname", "email", "phone", "city", "region", "district")
        ]
    if status == "approved":
        query["is_approved"] = True
    elif status == "pending":
        query["is_approved"] = False
    if category and category != "all":
        query["category"] = category
    return query


def merge_sample_work(current: List[str], new_files: List[str], limit: int) -> Tuple[List[str], List[str]]:
    """
    Appends files not already in the gallery and keeps the newest ``limit``.

    Returns:
        (gallery, dropped) where dropped are the oldest entries pushed out
    """
    gallery = list(current)
    for path in new_files:
        if path not in gallery:
            gallery.append(path)
    overflow = max(len(gallery) - limit, 0)
    return gallery[overflow:], gallery[:overflow]


def serialize_provider(document: Dict[str, Any]) -> Dict[str, Any]:
    return ProviderDocument.model_validate(document).model_dump(by_alias=True)


class ProviderService:
    def __init__(self, providers, featured=None, media: Optional[MediaStorage] = None):
        self.providers = providers
        self.featured = featured
        self.media = media or MediaStorage()

    async def _find(self, provider_id: str) -> Dict[str, Any]:
        oid = to_object_id(provider_id)
        provider = await self.providers.find_one({"_id": oid}) if oid else None
        if not provider:
            raise ResourceNotFoundError("Provider not found")
        return provider

    async def _find_by_user(self, user_id: str) -> Dict[str, Any]:
        provider = await self.providers.find_one({"user_id": to_object_id(user_id)})
        if not provider:
            raise ResourceNotFoundError("Provider profile not found")
        return provider

    async def _replace(self, provider: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """Validates the merged document and writes the changed fields."""
        merged = {**provider, **changes, "updated_at": utcnow()}
        document = ProviderDocument.model_validate(merged)
        data = document.to_mongo()
        # Reviews and rating are only written by add_review
        for key in ("_id", "reviews", "average_rating"):
            data.pop(key, None)
        return await self._update(provider["_id"], {"$set": data})

    async def _update(self, oid, update: Dict[str, Any]) -> Dict[str, Any]:
        """Applies ``update`` and returns the new document; 404 if it vanished meanwhile."""
        updated = await self.providers.find_one_and_update(
            {"_id": oid},
            update,
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ResourceNotFoundError("Provider not found")
        return updated

    async def _page(
        self,
        query: Dict[str, Any],
        sort: List[Tuple[str, int]],
        pagination: Pagination,
    ) -> Tuple[List[Dict[str, Any]], int]:
        cursor = self.providers.find(query).sort(sort).skip(pagination.skip).limit(pagination.limit)
        documents, total = await asyncio.gather(
            cursor.to_list(length=pagination.limit),
            self.providers.count_documents(query),
        )
        return [serialize_provider(doc) for doc in documents], total

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    async def list_providers(self, query: Dict[str, Any], pagination: Pagination):
        return await self._page(query, PUBLIC_SORTS["newest"], pagination)

    async def search_providers(self, text: str, limit: int) -> List[Dict[str, Any]]:
        if not text or not text.strip():
            return []
        cursor = self.providers.find(build_provider_search(text)).sort(PUBLIC_SORTS["rating"]).limit(limit)
        return [serialize_provider(doc) for doc in await cursor.to_list(length=limit)]

    async def get_provider(self, provider_id: str) -> Dict[str, Any]:
        return serialize_provider(await self._find(provider_id))

    async def get_for_user(self, user_id: str) -> Dict[str, Any]:
        return serialize_provider(await self._find_by_user(user_id))

    async def find_for_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        provider = await self.providers.find_one({"user_id": to_object_id(user_id)})
        return serialize_provider(provider) if provider else None

    async def providers_by_region(self) -> Dict[str, Any]:
        cursor = self.providers.find(
            {"is_approved": True, "region": {"$nin": [None, ""]}},
            {"region": 1, "skills": 1, "average_rating": 1},
        )
        return aggregation.group_providers_by_region(await cursor.to_list(length=None))

    async def region_category_counts(self, region: str) -> Dict[str, Any]:
        """Per-category provider counts in a region plus the region total."""
        query = {"is_approved": True, "region": region_pattern(region)}
        cursor = self.providers.find(
            {**query, "category": {"$exists": True, "$ne": []}},
            SAMPLE_FIELDS,
        )
        documents, total = await asyncio.gather(
            cursor.to_list(length=None),
            self.providers.count_documents(query),
        )
        stats = aggregation.count_categories(documents)
        logger.debug(f"Region {region}: {total} providers, {len(stats)} categories")
        return {"region": region, "totalProviders": total, "categoryStats": stats}

    async def region_categories(self, region: str) -> List[Dict[str, Any]]:
        cursor = self.providers.find(
            {"is_approved": True, "region": region_pattern(region)},
            {"category": 1},
        )
        return aggregation.top_categories(await cursor.to_list(length=None))

    async def region_category(
        self,
        region: Optional[str],
        category: Optional[str],
        pagination: Pagination,
        sort: str = "rating",
    ):
        query = build_provider_query(region=region, main_category=category)
        return await self._page(query, PUBLIC_SORTS.get(sort, PUBLIC_SORTS["rating"]), pagination)

    # ------------------------------------------------------------------
    # Provider self-service
    # ------------------------------------------------------------------

    async def register(
        self,
        user_id: str,
        fields: Dict[str, Any],
        profile_pic: Optional[UploadFile] = None,
        sample_work: Optional[List[UploadFile]] = None,
    ) -> Dict[str, Any]:
        """
        Creates the caller's provider profile (unapproved).

        Files written by this call are removed again if the profile cannot
        be stored.

        Raises:
            ValidationError: Already registered, or too many samples
        """
        with LogContext(user_id=user_id):
            if await self.providers.find_one({"user_id": to_object_id(user_id)}, {"_id": 1}):
                raise ValidationError(PROVIDER_ALREADY_REGISTERED_MESSAGE)

            samples = [file for file in sample_work or [] if has_upload(file)]
            if len(samples) > settings.SAMPLE_WORK_LIMIT:
                raise ValidationError(
                    f"Maximum {settings.SAMPLE_WORK_LIMIT} sample work files allowed"
                )

            written: List[str] = []
            try:
                picture = ""
                if has_upload(profile_pic):
                    picture = await self.media.save(profile_pic, PROVIDERS, "profilePic")
                    written.append(picture)
                written.extend(await self.media.save_many(samples, PROVIDERS, "sampleWork", documents=True))

                now = utcnow()
                document = ProviderDocument(
                    user_id=user_id,
                    first_name=fields.get("fname") or "",
                    surname=fields.get("sname") or "",
                    other_name=fields.get("other_name") or "",
                    city=fields.get("city") or "",
                    region=fields.get("region") or "",
                    district=fields.get("district") or "",
                    category=clean_list(fields.get("category")),
                    skills=clean_list(fields.get("skills")),
                    bio=fields.get("bio") or "",
                    experience=fields.get("experience") or "",
                    hourly_rate=fields.get("hourly_rate") or "",
                    availability=fields.get("availability") or "flexible",
                    phone=fields.get("phone") or "",
                    whatsapp=fields.get("whatsapp") or "",
                    email=fields.get("email") or "",
                    profile_pic=picture,
                    sample_work=[path for path in written if path != picture],
                    is_approved=False,
                    created_at=now,
                    updated_at=now,
                )
                data = document.to_mongo()
                result = await self.providers.insert_one(data)
            except DuplicateKeyError:
                await self.media.delete_many(written)
                raise ValidationError(PROVIDER_ALREADY_REGISTERED_MESSAGE)
            except Exception:
                removed = await self.media.delete_many(written)
                logger.warning(f"Provider registration failed, removed {removed} uploaded files")
                raise

            data["_id"] = result.inserted_id
            logger.info(f"Provider registered: {result.inserted_id}")
            return serialize_provider(data)

    async def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        profile_pic: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """
        Applies edits to names, location, contact and profile picture.
        Category, bio, skills, rates and gallery go through update requests.
        """
        provider = await self._find_by_user(user_id)
        changes: Dict[str, Any] = {}

        for source, target in (("fname", "first_name"), ("sname", "surname"), ("other_name", "other_name")):
            if fields.get(source):
                changes[target] = fields[source]
        for name in SELF_SERVICE_FIELDS:
            if fields.get(name) is not None:
                changes[name] = fields[name]

        old_picture = None
        if has_upload(profile_pic):
            changes["profile_pic"] = await self.media.save(profile_pic, PROVIDERS, "profilePic")
            old_picture = provider.get("profile_pic") or ""

        try:
            updated = await self._replace(provider, changes)
        except Exception:
            if "profile_pic" in changes:
                await self.media.delete(changes["profile_pic"])
            raise
        if old_picture:
            await self.media.delete(old_picture)

        logger.info(f"Provider profile updated: {provider['_id']}", extra={"user_id": user_id})
        return serialize_provider(updated)

    async def remove_sample(self, user_id: str, index: int) -> Dict[str, Any]:
        provider = await self._find_by_user(user_id)
        samples = list(provider.get("sample_work", []))
        if index < 0 or index >= len(samples):
            raise ValidationError("Invalid sample index")

        removed = samples.pop(index)
        updated = await self._update(
            provider["_id"],
            {"$set": {"sample_work": samples, "updated_at": utcnow()}},
        )
        await self.media.delete(removed)
        return serialize_provider(updated)

    async def add_review(
        self,
        provider_id: str,
        user: Dict[str, Any],
        rating: int,
        comment: str,
    ) -> Dict[str, Any]:
        """
        Appends a review and recalculates the average rating.

        The duplicate check is part of the update filter, so a user's second
        review never lands even when two requests race.

        Raises:
            ResourceNotFoundError: Unknown provider
            ValidationError: The user already reviewed this provider
        """
        oid = to_object_id(provider_id)
        if oid is None:
            raise ResourceNotFoundError("Provider not found")

        review = {
            "user_id": user["_id"],
            "name": user.get("name") or user.get("email", ""),
            "rating": rating,
            "comment": comment,
            "date": utcnow(),
        }
        updated = await self.providers.find_one_and_update(
            {"_id": oid, "reviews.user_id": {"$ne": user["_id"]}},
            {"$push": {"reviews": review}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            if await self.providers.find_one({"_id": oid}, {"_id": 1}):
                raise ValidationError(ALREADY_REVIEWED_MESSAGE)
            raise ResourceNotFoundError("Provider not found")

        average = calculate_average_rating(updated.get("reviews", []))
        updated = await self._update(oid, {"$set": {"average_rating": average}})
        logger.info(f"Review added to provider {provider_id}", extra={"provider_id": provider_id})
        return serialize_provider(updated)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def admin_list(self, query: Dict[str, Any], sort: str, pagination: Pagination):
        return await self._page(query, ADMIN_SORTS.get(sort, ADMIN_SORTS["newest"]), pagination)

    async def admin_update(
        self,
        provider_id: str,
        fields: Dict[str, Any],
        removed_samples: Optional[List[str]] = None,
        profile_pic: Optional[UploadFile] = None,
        sample_work: Optional[List[UploadFile]] = None,
    ) -> Dict[str, Any]:
        """
        Overwrites any field. ``removed_samples`` are matched by file name
        and deleted; new samples are appended and the gallery keeps the
        newest ``SAMPLE_WORK_LIMIT`` entries, deleting the ones pushed out.
        """
        provider = await self._find(provider_id)
        changes: Dict[str, Any] = {
            name: fields[name] for name in ADMIN_TEXT_FIELDS if fields.get(name) is not None
        }
        if fields.get("is_approved") is not None:
            changes["is_approved"] = fields["is_approved"]
        for name in ("category", "skills"):
            values = clean_list(fields.get(name))
            if values:
                changes[name] = values

        samples = list(provider.get("sample_work", []))
        dropped: List[str] = []
        removed_names = {path.rsplit("/", 1)[-1] for path in clean_list(removed_samples)}
        if removed_names:
            dropped = [path for path in samples if path.rsplit("/", 1)[-1] in removed_names]
            samples = [path for path in samples if path not in dropped]

        new_files = [file for file in sample_work or [] if has_upload(file)]
        if len(new_files) > settings.SAMPLE_WORK_LIMIT:
            raise ValidationError(f"Maximum {settings.SAMPLE_WORK_LIMIT} sample work files allowed")
        added = await self.media.save_many(new_files, PROVIDERS, "sampleWork", documents=True)
        if removed_names or added:
            samples, overflow = merge_sample_work(samples, added, settings.SAMPLE_WORK_LIMIT)
            dropped.extend(overflow)
            changes["sample_work"] = samples

        old_picture = None
        if has_upload(profile_pic):
            changes["profile_pic"] = await self.media.save(profile_pic, PROVIDERS, "profilePic")
            old_picture = provider.get("profile_pic") or ""

        try:
            updated = await self._replace(provider, changes)
        except Exception:
            await self.media.delete_many(added)
            if "profile_pic" in changes:
                await self.media.delete(changes["profile_pic"])
            raise

        await self.media.delete_many(dropped)
        if old_picture:
            await self.media.delete(old_picture)
        logger.info(f"Admin updated provider {provider_id}", extra={"provider_id": provider_id})
        return serialize_provider(updated)

    async def delete_provider(self, provider_id: str) -> None:
        provider = await self._find(provider_id)
        await self.providers.delete_one({"_id": provider["_id"]})
        await self._delete_media(provider)
        if self.featured is not None:
            await self.featured.delete_many({"provider_id": provider["_id"]})
        logger.info(f"Provider deleted: {provider_id}", extra={"provider_id": provider_id})

    async def _delete_media(self, provider: Dict[str, Any]) -> None:
        await self.media.delete(provider.get("profile_pic"))
        await self.media.delete_many(provider.get("sample_work", []))

    async def set_approval(self, provider_id: str, is_approved: Optional[bool] = None) -> Dict[str, Any]:
        """Sets approval to ``is_approved``, or toggles it when None."""
        provider = await self._find(provider_id)
        value = (not provider.get("is_approved", False)) if is_approved is None else is_approved
        updated = await self._update(
            provider["_id"],
            {"$set": {"is_approved": value, "updated_at": utcnow()}},
        )
        return serialize_provider(updated)

    async def bulk_set_approval(self, ids: List[str], is_approved: bool = True) -> List[Dict[str, Any]]:
        object_ids = [oid for oid in (to_object_id(value) for value in ids) if oid]
        await self.providers.update_many(
            {"_id": {"$in": object_ids}},
            {"$set": {"is_approved": is_approved, "updated_at": utcnow()}},
        )
        cursor = self.providers.find({"_id": {"$in": object_ids}})
        return [serialize_provider(doc) for doc in await cursor.to_list(length=None)]

    async def bulk_delete(self, ids: List[str]) -> int:
        object_ids = [oid for oid in (to_object_id(value) for value in ids) if oid]
        documents = await self.providers.find({"_id": {"$in": object_ids}}).to_list(length=None)
        for provider in documents:
            await self._delete_media(provider)
        result = await self.providers.delete_many({"_id": {"$in": object_ids}})
        if self.featured is not None:
            await self.featured.delete_many({"provider_id": {"$in": object_ids}})
        return result.deleted_count

    async def _mirror_featured(self, provider_ids: List[Any], value: bool) -> None:
        """Keeps the homepage featured-providers list in step with ``is_featured``."""
        if self.featured is None:
            return
        if not value:
            await self.featured.update_many(
                {"provider_id": {"$in": provider_ids}},
                {"$set": {"is_active": False, "expires_at": utcnow()}},
            )
            return
        for oid in provider_ids:
            order = await self.featured.count_documents({"is_active": True})
            await self.featured.update_one(
                {"provider_id": oid},
                {
                    "$set": {"is_active": True, "expires_at": expires_in(days=FEATURED_DAYS)},
                    "$setOnInsert": {"order": order, "created_at": utcnow()},
                },
                upsert=True,
            )

    async def set_featured(self, provider_id: str, is_featured: Optional[bool] = None) -> Dict[str, Any]:
        """
        Sets or toggles the featured flag and mirrors it into the
        homepage featured-providers list (30-day entry when featuring).
        """
        provider = await self._find(provider_id)
        value = (not provider.get("is_featured", False)) if is_featured is None else is_featured
        updated = await self._update(
            provider["_id"],
            {"$set": {"is_featured": value, "updated_at": utcnow()}},
        )
        await self._mirror_featured([provider["_id"]], value)

        logger.info(
            f"Provider {provider_id} {'featured' if value else 'unfeatured'}",
            extra={"provider_id": provider_id},
        )
        return serialize_provider(updated)

    async def bulk_set_featured(self, ids: List[str], is_featured: bool = True) -> int:
        """
        Sets the featured flag on every listed provider that exists.

        Returns:
            Number of providers updated
        """
        object_ids = [oid for oid in (to_object_id(value) for value in ids) if oid]
        if not object_ids:
            raise ValidationError("No providers selected")
        found = await self.providers.find({"_id": {"$in": object_ids}}, {"_id": 1}).to_list(length=None)
        existing = [doc["_id"] for doc in found]
        if existing:
            await self.providers.update_many(
                {"_id": {"$in": existing}},
                {"$set": {"is_featured": is_featured, "updated_at": utcnow()}},
            )
            await self._mirror_featured(existing, is_featured)
        logger.info(f"{len(existing)} providers {'featured' if is_featured else 'unfeatured'}")
        return len(existing)
