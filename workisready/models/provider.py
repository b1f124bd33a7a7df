"""
workisready/models/provider.py

Purpose: Provider document model

- Service-provider profile, one per user
- Categories, skills, media gallery, embedded reviews
- Derived full name, average rating and display labels
"""

from datetime import datetime
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from utils.constants import (
    AVAILABILITY_LABELS,
    CURRENCY_SYMBOL,
    EXPERIENCE_LABELS,
    EXPERIENCE_RANKS,
    MAX_PROVIDER_SKILLS,
    MAX_SAMPLE_WORK,
    MAX_TASK_CATEGORIES,
    NEGOTIABLE_RATE_LABEL,
)
from workisready.models.base import ObjectIdStr, TimestampedModel

Experience = Literal["", "less-1", "1-3", "3-5", "5-10", "10+"]
Availability = Literal["flexible", "weekdays", "weekends", "evenings"]


class Review(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: ObjectIdStr
    name: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=500)
    date: Optional[datetime] = None


def build_full_name(first_name: str, surname: str, other_name: str = "") -> str:
    parts = [first_name, surname, other_name]
    return " ".join(part.strip() for part in parts if part and part.strip())


def calculate_average_rating(reviews: List[dict]) -> float:
    """
    Arithmetic mean of review ratings rounded to one decimal; 0 when empty.
    """
    if not reviews:
        return 0
    total = sum(review["rating"] for review in reviews)
    return round(total / len(reviews), 1)


class ProviderDocument(TimestampedModel):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("user_id",)

    user_id: ObjectIdStr

    first_name: str = Field(min_length=1)
    surname: str = Field(min_length=1)
    other_name: str = ""
    full_name: str = ""

    city: str = Field(min_length=1)
    region: str = Field(min_length=1)
    district: str = Field(min_length=1)

    category: List[str] = Field(min_length=1, max_length=MAX_TASK_CATEGORIES)
    skills: List[str] = Field(default_factory=list, max_length=MAX_PROVIDER_SKILLS)

    bio: str = Field(min_length=50, max_length=1000)
    experience: Experience = ""
    # Sort key for "experience" ordering, kept in step with experience
    experience_rank: int = 0
    hourly_rate: str = ""
    availability: Availability = "flexible"

    phone: str = Field(min_length=1)
    whatsapp: str = ""
    email: str = Field(min_length=1)

    profile_pic: str = ""
    sample_work: List[str] = Field(default_factory=list, max_length=MAX_SAMPLE_WORK)

    reviews: List[Review] = Field(default_factory=list)
    average_rating: float = Field(default=0, ge=0, le=5)

    is_approved: bool = False
    is_featured: bool = False
    is_verified: bool = False

    total_jobs: int = 0
    completed_jobs: int = 0

    @model_validator(mode="after")
    def derive_fields(self) -> "ProviderDocument":
        if self.first_name and self.surname:
            self.full_name = build_full_name(self.first_name, self.surname, self.other_name)
        self.experience_rank = EXPERIENCE_RANKS.get(self.experience, 0)
        return self

    @computed_field(alias="formattedHourlyRate")
    @property
    def formatted_hourly_rate(self) -> str:
        if not self.hourly_rate:
            return NEGOTIABLE_RATE_LABEL
        return f"{CURRENCY_SYMBOL}{self.hourly_rate}/hour"

    @computed_field(alias="experienceLabel")
    @property
    def experience_label(self) -> str:
        return EXPERIENCE_LABELS.get(self.experience, "Not specified")

    @computed_field(alias="availabilityLabel")
    @property
    def availability_label(self) -> str:
        return AVAILABILITY_LABELS.get(self.availability, "Flexible")

    @computed_field(alias="reviewCount")
    @property
    def review_count(self) -> int:
        return len(self.reviews)
