"""
workisready/api/dependencies.py

Purpose: Request-scoped dependencies

- Builds services around their Motor collections
- Resolves the bearer token to the current user
- Admin gate
"""

from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from utils.pagination_utils import Pagination, normalize_pagination
from workisready.core.config import settings
from workisready.core.exceptions import AuthenticationError, PermissionDeniedError
from workisready.db import mongo
from workisready.services.email_service import EmailService
from workisready.services.home_service import (
    FEATURED_PROVIDERS_SECTION,
    POPULAR_CITIES_SECTION,
    POPULAR_JOBS_SECTION,
    URGENT_WORK_SECTION,
    HomeService,
)
from workisready.services.media_service import MediaStorage
from workisready.services.provider_service import ProviderService
from workisready.services.task_service import TaskService
from workisready.services.update_request_service import UpdateRequestService
from workisready.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_media_storage() -> MediaStorage:
    return MediaStorage()


def get_task_service(media: MediaStorage = Depends(get_media_storage)) -> TaskService:
    return TaskService(mongo.get_tasks_collection(), mongo.get_users_collection(), media)


def get_provider_service(media: MediaStorage = Depends(get_media_storage)) -> ProviderService:
    return ProviderService(
        mongo.get_providers_collection(),
        mongo.get_collection(mongo.FEATURED_PROVIDERS),
        media,
    )


def get_update_request_service(media: MediaStorage = Depends(get_media_storage)) -> UpdateRequestService:
    return UpdateRequestService(
        mongo.get_update_requests_collection(),
        mongo.get_providers_collection(),
        media,
    )


def get_user_service(media: MediaStorage = Depends(get_media_storage)) -> UserService:
    return UserService(
        mongo.get_users_collection(),
        mongo.get_sessions_collection(),
        tasks=mongo.get_tasks_collection(),
        email=EmailService(),
        media=media,
    )


def get_home_service() -> HomeService:
    sections = {
        FEATURED_PROVIDERS_SECTION: mongo.get_collection(mongo.FEATURED_PROVIDERS),
        URGENT_WORK_SECTION: mongo.get_collection(mongo.URGENT_WORK),
        POPULAR_JOBS_SECTION: mongo.get_collection(mongo.POPULAR_JOBS),
        POPULAR_CITIES_SECTION: mongo.get_collection(mongo.POPULAR_CITIES),
    }
    return HomeService(
        sections,
        mongo.get_tasks_collection(),
        mongo.get_providers_collection(),
        mongo.get_users_collection(),
    )


def get_pagination(page: Optional[int] = None, limit: Optional[int] = None) -> Pagination:
    return normalize_pagination(page, limit, settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    users: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Raw user document of the caller."""
    user = await users.resolve_token(token)
    if user is None:
        raise AuthenticationError("Token is not valid")
    return user


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise PermissionDeniedError("Admin access required")
    return user
