from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import AliasChoices, BaseModel, Field, ConfigDict

# Rounding slack allowed between stored monetary fields
AMOUNT_TOLERANCE = 0.01


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Mongo hands back naive UTC datetimes; make them comparable with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for ``value`` or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoDocument(BaseModel):
    """A stored document. ``_id`` is exposed as a string ``id``."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "_id"),
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ScopedDocument(MongoDocument):
    """A document owned by exactly one business (tenant)."""
    business_id: str

