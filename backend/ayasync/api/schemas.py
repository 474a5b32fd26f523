from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for request/response bodies.

    Fields are snake_case in Python and camelCase on the wire
    (assigned_to <-> assignedTo), matching what the board UI sends.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StrictCamelModel(CamelModel):
    """Request body that rejects fields it does not declare"""
    model_config = ConfigDict(extra="forbid")


class TimestampedResponse(CamelModel):
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_serializer("created_at", "updated_at")
    def serialize_timestamps(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


def dump(model: BaseModel) -> dict[str, Any]:
    """Wire representation of a response model, used for realtime payloads"""
    return model.model_dump(mode="json", by_alias=True)
