"""
Common utility functions used across multiple routes.
"""

from datetime import date, datetime
from typing import Any, Optional

from api.schemas.envelope_schemas import Envelope, ErrorBody, PageMeta

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def iso_format(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO string with Z suffix (naive values are UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.isoformat().replace("+00:00", "Z")
    return dt.isoformat() + "Z"


def iso_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def ok(data: Any, meta: Optional[PageMeta] = None) -> Envelope:
    return Envelope(data=data, error=None, meta=meta)


def error_body(message: str, code: Optional[str] = None, details: Any = None) -> dict:
    err = ErrorBody(message=message, code=code, details=details)
    return {"data": None, "error": err.model_dump(by_alias=True, exclude_none=True)}


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(1, page), max(1, min(MAX_PAGE_SIZE, page_size))


def page_meta(total: int, page: int, page_size: int) -> PageMeta:
    return PageMeta(total=total, page=page, page_size=page_size, has_more=page * page_size < total)


def enrollment_status_for(progress: int) -> str:
    if progress >= 100:
        return "completed"
    if progress > 0:
        return "in_progress"
    return "not_started"
