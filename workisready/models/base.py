"""
workisready/models/base.py

Purpose: Shared document model plumbing

- snake_case storage, camelCase JSON with ``_id`` kept as-is
- ObjectId <-> str conversion at the model boundary
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Tuple

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

from utils.validation_utils import to_object_id


def _id_to_str(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


ObjectIdStr = Annotated[str, BeforeValidator(_id_to_str)]


class MongoModel(BaseModel):
    """
    Base for persisted documents.

    Validating a raw Mongo document (snake_case keys, ObjectIds) yields a
    model that serializes to the API shape. ``to_mongo`` goes the other way.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # Fields stored as ObjectId in Mongo
    object_id_fields: ClassVar[Tuple[str, ...]] = ()

    id: Optional[ObjectIdStr] = Field(default=None, alias="_id")

    def to_mongo(self) -> Dict[str, Any]:
        """Dumps the document for storage (field names, ObjectIds restored)."""
        derived = set(type(self).model_computed_fields)
        data = self.model_dump(exclude={"id", *derived})
        if self.id:
            data["_id"] = to_object_id(self.id)
        for field in self.object_id_fields:
            if data.get(field):
                data[field] = to_object_id(data[field])
        return data


class TimestampedModel(MongoModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
