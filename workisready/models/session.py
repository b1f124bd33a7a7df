"""
workisready/models/session.py

Purpose: Login session model

- Opaque bearer token bound to one user
- Removed by the TTL index once expires_at passes
"""

from datetime import datetime
from typing import ClassVar, Tuple

from workisready.models.base import MongoModel, ObjectIdStr


class Session(MongoModel):
    object_id_fields: ClassVar[Tuple[str, ...]] = ("user_id",)

    token: str
    user_id: ObjectIdStr
    created_at: datetime
    expires_at: datetime
