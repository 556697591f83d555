"""
Course list and course-load endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.bootstrap import get_progress_sync
from api.config import get_db, settings
from api.schemas.course_schemas import CourseListResponse, CourseLoadResponse
from api.schemas.envelope_schemas import Envelope
from api.schemas.user_schemas import User
from api.services.course_service import CourseService
from api.services.progress_service import ProgressService
from api.utils.auth import get_portal_user
from api.utils.common import ok
from progression.sync import ProgressSync

course_routes = APIRouter()


@course_routes.get("/courses", response_model=Envelope[CourseListResponse])
async def list_courses(
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
) -> Envelope[CourseListResponse]:
    """Courses visible to the caller (allow-list applied)."""
    assert current_user is not None
    return ok(CourseListResponse(courses=CourseService(db).list_courses(current_user)))


@course_routes.get("/courses/{code}", response_model=Envelope[CourseLoadResponse])
async def load_course(
    code: str,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[CourseLoadResponse]:
    """Course content with the learner's reconciled progress."""
    assert current_user is not None
    service = ProgressService(db, sync, settings.unlock_mode)
    course, session = service.open_by_code(current_user, code)
    enrollment = service.ensure_enrollment(current_user, course)
    state = session.state
    return ok(
        CourseLoadResponse(
            course=service.courses.summary(course, enrollment.id),
            modules=state.modules,
            qubits_modules=state.qubits_modules,
            qubits_dashboard=state.qubits_dashboard,
            learner_progress=state.progress,
            restored=state.restored,
        )
    )
