"""
workisready/models/user.py

Purpose: User document model

- Account identity (email, names, contact)
- Credentials and email verification state
- Role (user/admin) and admin approval flag
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from workisready.models.base import MongoModel, TimestampedModel

UserType = Literal["client", "worker"]
Role = Literal["user", "admin"]


class UserDocument(TimestampedModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password_hash: str = ""

    fname: str = ""
    sname: str = ""
    oname: str = ""

    # None instead of "" so the partial unique index skips them
    phone: Optional[str] = None
    whatsapp: Optional[str] = None

    location: str = ""
    region: str = ""
    district: str = ""

    user_type: UserType = "client"
    profile_image: str = ""
    role: Role = "user"

    is_verified: bool = False
    is_approved: bool = False
    verification_token: Optional[str] = None
    verification_token_expires: Optional[datetime] = None
    reset_token: Optional[str] = None
    reset_token_expires: Optional[datetime] = None
    last_approved_at: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("phone", "whatsapp", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PublicUser(MongoModel):
    """
    API view of a user; credentials and verification tokens are not part
    of the model, so they are dropped on validation.
    """

    name: str = ""
    email: str = ""
    fname: str = ""
    sname: str = ""
    oname: str = ""
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    location: str = ""
    region: str = ""
    district: str = ""
    user_type: UserType = "client"
    profile_image: str = ""
    role: Role = "user"
    is_verified: bool = False
    is_approved: bool = False
    last_approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def public_user(document: Dict[str, Any]) -> Dict[str, Any]:
    """Serializes a raw user document for API responses."""
    return PublicUser.model_validate(document).model_dump(by_alias=True)
