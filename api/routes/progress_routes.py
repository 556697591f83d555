"""
Lesson progress and reset endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.bootstrap import get_progress_sync
from api.config import get_db, settings
from api.schemas.envelope_schemas import Envelope
from api.schemas.progress_schemas import LessonProgressRequest, LessonProgressResponse, ResetResponse
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService
from api.utils.auth import get_portal_user
from api.utils.common import ok
from progression.sync import ProgressSync

progress_routes = APIRouter()


@progress_routes.post("/progress/lesson", response_model=Envelope[LessonProgressResponse])
async def update_lesson_progress(
    req: LessonProgressRequest,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[LessonProgressResponse]:
    """Playback ticks and lesson completion."""
    assert current_user is not None
    service = ProgressService(db, sync, settings.unlock_mode)
    return ok(service.record_lesson(current_user, req))


@progress_routes.delete("/progress/{code}", response_model=Envelope[ResetResponse])
async def reset_progress(
    code: str,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[ResetResponse]:
    """Zero the caller's progress for a course and delete the saved snapshot."""
    assert current_user is not None
    ProgressService(db, sync, settings.unlock_mode).reset(current_user, code)
    return ok(ResetResponse(course_code=code, reset=True))
