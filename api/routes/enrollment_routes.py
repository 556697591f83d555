"""
Enrollment endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.bootstrap import get_progress_sync
from api.config import get_db, settings
from api.models.models import Enrollment, QuizAttempt
from api.schemas.enrollment_schemas import EnrollmentDetailResponse, EnrollmentResponse, LessonProgressEntry, QuizAttemptEntry
from api.schemas.envelope_schemas import Envelope
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService
from api.utils.auth import get_portal_user
from api.utils.common import DEFAULT_PAGE_SIZE, clamp_page, iso_format, ok, page_meta
from progression.models import CourseState
from progression.sync import ProgressSync

enrollment_routes = APIRouter()


def _to_response(e: Enrollment) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=e.id,
        course_id=e.course_id,
        course_code=e.course.code,
        course_title=e.course.title,
        status=e.status,
        progress=e.progress,
        enrolled_at=iso_format(e.enrolled_at),
        started_at=iso_format(e.started_at),
        completed_at=iso_format(e.completed_at),
        last_accessed_at=iso_format(e.last_accessed_at),
    )


def _lesson_entries(state: CourseState) -> list[LessonProgressEntry]:
    return [
        LessonProgressEntry(
            module_id=module.id,
            lesson_id=lesson.id,
            title=lesson.title,
            status=lesson.status.value,
            progress_percent=lesson.progress,
            last_position=lesson.last_position,
            watched_duration=lesson.watched_seconds,
        )
        for module in state.modules
        for lesson in module.lessons
    ]


def _attempt_entry(a: QuizAttempt) -> QuizAttemptEntry:
    return QuizAttemptEntry(
        id=a.id,
        quiz_id=a.quiz_id,
        attempt_number=a.attempt_number,
        score=a.score,
        passed=a.passed,
        total_questions=a.total_questions,
        correct_answers=a.correct_answers,
        duration_seconds=a.duration_seconds,
        completed_at=iso_format(a.completed_at),
    )


@enrollment_routes.get("/enrollments", response_model=Envelope[list[EnrollmentResponse]])
async def list_enrollments(
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
) -> Envelope[list[EnrollmentResponse]]:
    assert current_user is not None
    page, page_size = clamp_page(page, page_size)
    q = db.query(Enrollment).filter(Enrollment.user_id == current_user.id)
    if status:
        q = q.filter(Enrollment.status == status)
    total = q.count()
    rows = q.order_by(Enrollment.enrolled_at.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return ok([_to_response(e) for e in rows], meta=page_meta(total, page, page_size))


@enrollment_routes.get("/enrollments/{enrollment_id}", response_model=Envelope[EnrollmentDetailResponse])
async def get_enrollment(
    enrollment_id: str,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[EnrollmentDetailResponse]:
    """Enrollment with per-lesson progress and the quiz attempt history."""
    assert current_user is not None
    service = ProgressService(db, sync, settings.unlock_mode)
    enrollment, session, attempts = service.enrollment_detail(current_user, enrollment_id)
    base = _to_response(enrollment)
    return ok(
        EnrollmentDetailResponse(
            **base.model_dump(),
            lesson_progress=_lesson_entries(session.state),
            quiz_attempts=[_attempt_entry(a) for a in attempts],
        )
    )
