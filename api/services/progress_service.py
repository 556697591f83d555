"""
Progress service: runs learner events through a LearnerSession and keeps the
enrollment row and gamification profile in step with the result.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session as DBSession

from api.models.models import Course, Enrollment, QuizAttempt
from api.schemas.progress_schemas import EnrollmentProgress, LessonProgressRequest, LessonProgressResponse
from api.schemas.user_schemas import User
from api.services.course_service import CourseService
from api.services.gamification_service import GamificationService
from api.utils.common import enrollment_status_for
from api.utils.logger import configure_logging, set_learner_context
from progression.errors import Forbidden, NotFound, PayloadValidationError
from progression.models import LearnerProgress, LessonStatus, UnlockMode
from progression.session import LearnerSession
from progression.sync import ProgressSync

logger = configure_logging()


def owned_enrollment(db: DBSession, user: User, enrollment_id: str) -> Enrollment:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if enrollment is None:
        raise NotFound("Enrollment not found", details={"enrollment_id": enrollment_id})
    if enrollment.user_id != user.id:
        logger.warning("enrollment %s does not belong to user=%s", enrollment_id, user.id)
        raise Forbidden("Enrollment belongs to another user", details={"enrollment_id": enrollment_id})
    return enrollment


class ProgressService:
    def __init__(self, db: DBSession, sync: ProgressSync, mode: UnlockMode = UnlockMode.ALL_LESSONS):
        self.db = db
        self.sync = sync
        self.mode = mode
        self.courses = CourseService(db)
        self.gamification = GamificationService(db)

    # sessions

    def open_session(self, user: User, course: Course) -> LearnerSession:
        set_learner_context(user.id, course.code)
        content = self.courses.build_content(course)
        return LearnerSession.open(str(user.id), content, self.sync, self.mode)

    def open_by_code(self, user: User, course_code: str) -> tuple[Course, LearnerSession]:
        course = self.courses.get_allowed_course(user, course_code)
        return course, self.open_session(user, course)

    # enrollments

    def get_owned_enrollment(self, user: User, enrollment_id: str) -> Enrollment:
        return owned_enrollment(self.db, user, enrollment_id)

    def ensure_enrollment(self, user: User, course: Course) -> Enrollment:
        enrollment = (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user.id, Enrollment.course_id == course.id)
            .first()
        )
        if enrollment is None:
            enrollment = Enrollment(id=str(uuid4()), user_id=user.id, course_id=course.id)
            self.db.add(enrollment)
            self.db.commit()
            self.db.refresh(enrollment)
        return enrollment

    def sync_enrollment(self, enrollment: Enrollment, progress: LearnerProgress) -> Enrollment:
        """Enrollment progress/status follow the course overall progress."""
        now = datetime.utcnow()
        enrollment.progress = progress.overall_progress
        enrollment.status = enrollment_status_for(progress.overall_progress)
        enrollment.last_accessed_at = now
        if enrollment.status != "not_started" and enrollment.started_at is None:
            enrollment.started_at = now
        if enrollment.status == "completed":
            if enrollment.completed_at is None:
                enrollment.completed_at = now
        else:
            enrollment.completed_at = None
        return enrollment

    # events

    def record_lesson(self, user: User, req: LessonProgressRequest) -> LessonProgressResponse:
        if all(v is None for v in (req.status, req.progress_percent, req.last_position, req.watched_duration)):
            raise PayloadValidationError(
                "Lesson event needs status, progressPercent, lastPosition or watchedDuration",
                details={"lesson_id": req.lesson_id},
            )
        enrollment = self.get_owned_enrollment(user, req.enrollment_id)
        course = self.courses.get_allowed_course(user, enrollment.course.code)
        session = self.open_session(user, course)

        if req.status == LessonStatus.COMPLETED or (req.progress_percent or 0) >= 100:
            outcome = session.complete_lesson(req.lesson_id, req.last_position, req.watched_duration)
        else:
            outcome = session.record_lesson_progress(
                req.lesson_id,
                req.progress_percent or 0,
                req.last_position,
                req.watched_duration,
            )

        state = session.state
        self.sync_enrollment(enrollment, state.progress)
        xp = outcome.xp_awarded
        if outcome.newly_completed:
            self.gamification.lesson_completed(user.id, xp)
        self.db.commit()

        return LessonProgressResponse(
            lesson_id=outcome.lesson_id,
            status=outcome.status,
            progress=outcome.progress,
            last_position=outcome.last_position,
            watched_duration=outcome.watched_seconds,
            ignored=outcome.ignored,
            xp_awarded=xp,
            saved=outcome.saved,
            enrollment=EnrollmentProgress(id=enrollment.id, status=enrollment.status, progress=enrollment.progress),
            learner_progress=state.progress,
        )

    def reset(self, user: User, course_code: str) -> Optional[Enrollment]:
        course, session = self.open_by_code(user, course_code)
        state = session.reset()
        enrollment = (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user.id, Enrollment.course_id == course.id)
            .first()
        )
        if enrollment is not None:
            self.sync_enrollment(enrollment, state.progress)
            enrollment.started_at = None
            self.db.commit()
        return enrollment

    def enrollment_detail(self, user: User, enrollment_id: str) -> tuple[Enrollment, LearnerSession, list[QuizAttempt]]:
        """Enrollment row, its learner session and the quiz attempt history, oldest first."""
        enrollment = self.get_owned_enrollment(user, enrollment_id)
        course = self.courses.get_allowed_course(user, enrollment.course.code)
        session = self.open_session(user, course)
        attempts = (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.enrollment_id == enrollment.id)
            .order_by(QuizAttempt.completed_at.asc(), QuizAttempt.attempt_number.asc())
            .all()
        )
        return enrollment, session, attempts
