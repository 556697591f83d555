"""
Lesson progress and reset schemas.
"""

from typing import Optional

from pydantic import Field

from api.schemas.envelope_schemas import WireModel
from progression.models import LearnerProgress, LessonStatus


class LessonProgressRequest(WireModel):
    enrollment_id: str
    lesson_id: str
    status: Optional[LessonStatus] = None
    progress_percent: Optional[float] = Field(default=None, ge=0, le=100)
    last_position: Optional[int] = Field(default=None, ge=0)
    watched_duration: Optional[int] = Field(default=None, ge=0)  # seconds watched so far


class EnrollmentProgress(WireModel):
    id: str
    status: str
    progress: int


class LessonProgressResponse(WireModel):
    lesson_id: str
    status: LessonStatus
    progress: int
    last_position: int
    watched_duration: int = 0
    ignored: bool = False
    xp_awarded: int = 0
    saved: bool
    enrollment: EnrollmentProgress
    learner_progress: LearnerProgress


class ResetResponse(WireModel):
    course_code: str
    reset: bool
