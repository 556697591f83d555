"""
Response envelope shared by every /api route: `{data, error, meta?}`.

Request and response bodies use camelCase on the wire; the models accept
snake_case field names too.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorBody(WireModel):
    message: str
    code: Optional[str] = None
    details: Optional[Any] = None


class PageMeta(WireModel):
    total: int
    page: int
    page_size: int
    has_more: bool


class Envelope(WireModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[ErrorBody] = None
    meta: Optional[PageMeta] = None
