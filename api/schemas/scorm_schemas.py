"""
SCORM runtime data exchanged with packaged course players.
"""

from typing import Any, Literal, Optional

from pydantic import Field

from api.schemas.envelope_schemas import WireModel


class ScormUpdateRequest(WireModel):
    enrollment_id: str
    lesson_location: Optional[str] = None
    suspend_data: Optional[dict[str, Any]] = None
    session_time: Optional[int] = Field(default=None, ge=0)  # seconds added to the total
    score: Optional[float] = Field(default=None, ge=0, le=100)
    completion_status: Optional[Literal["incomplete", "completed"]] = None
    success_status: Optional[Literal["unknown", "passed", "failed"]] = None
    progress_measure: Optional[float] = Field(default=None, ge=0, le=1)


class ScormDataResponse(WireModel):
    enrollment_id: str
    lesson_location: Optional[str] = None
    suspend_data: Optional[dict[str, Any]] = None
    total_time: int = 0
    score: Optional[float] = None
    completion_status: Optional[str] = None
    success_status: Optional[str] = None
    progress: int
    status: str
