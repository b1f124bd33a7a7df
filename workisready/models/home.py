"""
workisready/models/home.py

Purpose: Homepage curation entries

- Featured providers (expiring)
- Urgent work (expiring) and popular jobs, both pointing at tasks
- Popular cities, auto-calculated or with manual numbers
"""

from datetime import datetime
from typing import ClassVar, Dict, Literal, Optional, Tuple

from pydantic import Field

from workisready.models.base import MongoModel, ObjectIdStr

PopularJobReason = Literal["trending", "high_budget", "quick_completion", "admin_choice"]
HomeSection = Literal["featured-providers", "urgent-work", "popular-jobs", "popular-cities"]


class HomeEntry(MongoModel):
    is_active: bool = True
    order: int = 0
    created_at: Optional[datetime] = None


class FeaturedProvider(HomeEntry):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("provider_id",)

    provider_id: ObjectIdStr
    expires_at: Optional[datetime] = None


class UrgentWork(HomeEntry):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("task_id",)

    task_id: ObjectIdStr
    expires_at: Optional[datetime] = None


class PopularJob(HomeEntry):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("task_id",)

    task_id: ObjectIdStr
    reason: PopularJobReason = "admin_choice"


class PopularCity(HomeEntry):
    name: str = Field(min_length=1)
    is_auto_calculated: bool = False
    manual_job_count: int = 0
    manual_categories: Dict[str, int] = Field(default_factory=dict)
