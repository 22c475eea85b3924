from __future__ import annotations

"""Response envelope and the camelCase base model shared by all v1 schemas."""

from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Serialises with camelCase keys and accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope of every successful response."""

    success: bool = True
    message: str = "OK"
    data: Optional[DataT] = None
    timestamp: datetime = Field(default_factory=_utc_now)


def ok(data=None, message: str = "OK") -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)
