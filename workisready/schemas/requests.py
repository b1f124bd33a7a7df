"""
workisready/schemas/requests.py

Purpose: JSON request bodies

- Auth, review, status and moderation payloads
- camelCase on the wire, snake_case in code
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from workisready.models.home import HomeSection, PopularJobReason
from workisready.models.user import UserType


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ============================================================
# AUTH / USERS
# ============================================================

class RegisterRequest(RequestModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    fname: str = ""
    sname: str = ""
    oname: str = ""
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    location: str = ""
    region: str = ""
    district: str = ""
    user_type: UserType = "client"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Ama Mensah",
                "email": "ama@example.com",
                "password": "secret123",
                "phone": "0241234567",
                "region": "Ashanti",
            }
        }
    )

    def profile(self) -> dict:
        """Everything except the credentials."""
        return self.model_dump(exclude={"name", "email", "password"})


class LoginRequest(RequestModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class EmailRequest(RequestModel):
    email: str = ""


class ResetPasswordRequest(RequestModel):
    token: str = Field(..., min_length=1)
    password: str
    confirm_password: Optional[str] = None


class AdminUserCreate(RegisterRequest):
    pass


class AdminUserUpdate(RequestModel):
    """Only the keys sent are changed."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    user_type: Optional[UserType] = None


class BulkIds(RequestModel):
    ids: List[str] = Field(..., min_length=1)


# ============================================================
# TASKS / PROVIDERS
# ============================================================

class TaskStatusUpdate(RequestModel):
    status: Literal["open", "completed"]


class ReviewCreate(RequestModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=500)


class ApprovalToggle(RequestModel):
    """Omit ``isApproved`` to toggle."""
    is_approved: Optional[bool] = None


class FeatureToggle(RequestModel):
    """Omit ``isFeatured`` to toggle."""
    is_featured: Optional[bool] = None


class BulkApproval(BulkIds):
    is_approved: bool = True


class BulkFeature(BulkIds):
    is_featured: bool = True


class RejectRequest(RequestModel):
    reason: Optional[str] = None


# ============================================================
# HOMEPAGE
# ============================================================

class HomeEntryCreate(RequestModel):
    """
    One payload for every section; each section reads its own key
    (providerId, taskId or name).
    """
    provider_id: Optional[str] = None
    task_id: Optional[str] = None
    name: Optional[str] = None
    reason: PopularJobReason = "admin_choice"
    expires_at: Optional[datetime] = None
    is_active: bool = True
    is_auto_calculated: bool = False
    manual_job_count: int = Field(default=0, ge=0)
    manual_categories: Dict[str, int] = Field(default_factory=dict)


class OrderItem(BaseModel):
    id: str = Field(..., alias="_id")


class UpdateOrderRequest(RequestModel):
    section: HomeSection
    items: List[OrderItem]
