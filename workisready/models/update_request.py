"""
workisready/models/update_request.py

Purpose: Provider update request model

- Proposed edits to the moderated provider fields
- pending -> approved | rejected, both terminal
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workisready.models.base import MongoModel, ObjectIdStr
from workisready.models.provider import Availability, Experience

UpdateRequestStatus = Literal["pending", "approved", "rejected"]


class ProviderChanges(BaseModel):
    """
    Partial change-set. Only fields that were submitted are set; use
    ``present()`` to get them without the unset ones.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: Optional[List[str]] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[Experience] = None
    hourly_rate: Optional[str] = None
    availability: Optional[Availability] = None

    def present(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProviderUpdateRequest(MongoModel):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("provider_id", "user_id", "processed_by")

    provider_id: ObjectIdStr
    user_id: ObjectIdStr
    changes: ProviderChanges = Field(default_factory=ProviderChanges)
    new_sample_files: List[str] = Field(default_factory=list)
    status: UpdateRequestStatus = "pending"
    rejection_reason: Optional[str] = None
    processed_by: Optional[ObjectIdStr] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def to_mongo(self) -> Dict[str, Any]:
        data = super().to_mongo()
        data["changes"] = self.changes.present()
        return data
