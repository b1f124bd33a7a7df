"""
workisready/models/task.py

Purpose: Task document model

- Job posting owned by one client
- 1..5 categories, budget range, location breakdown
- Two-state lifecycle (open <-> completed)
"""

from datetime import datetime
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from utils.constants import MAX_TASK_CATEGORIES, MAX_TASK_IMAGES
from workisready.models.base import ObjectIdStr, TimestampedModel

TaskStatus = Literal["open", "completed"]


class Budget(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min: float = 0
    max: float = 0


class Contact(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    phone: str
    whatsapp: str = ""
    additional_contact: str = ""


class TaskDocument(TimestampedModel):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("client_id",)

    title: str = Field(min_length=1)
    main_category: str = ""
    category: List[str] = Field(min_length=1, max_length=MAX_TASK_CATEGORIES)
    description: str = Field(min_length=1)
    city: str = ""
    region: str = ""
    district: str = ""
    location: str = ""
    due_date: datetime
    budget: Budget = Field(default_factory=Budget)
    contact: Contact
    images: List[str] = Field(default_factory=list, max_length=MAX_TASK_IMAGES)
    client_id: ObjectIdStr
    status: TaskStatus = "open"
    completed_at: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def strip_categories(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("At least one category is required")
        return cleaned

    @model_validator(mode="after")
    def default_main_category(self) -> "TaskDocument":
        # Older tasks only carry the category list
        if not self.main_category and self.category:
            self.main_category = self.category[0]
        return self
