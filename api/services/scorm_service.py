"""
SCORM runtime persistence: bookmark, suspend data, accumulated time, score and
status reported by a packaged course player, stored on the enrollment.
"""

from datetime import datetime

from sqlalchemy.orm import Session as DBSession

from api.models.models import Enrollment
from api.schemas.scorm_schemas import ScormDataResponse, ScormUpdateRequest
from api.schemas.user_schemas import User
from api.services.progress_service import owned_enrollment
from api.utils.logger import configure_logging
from progression.numbers import clamp_percent

logger = configure_logging()


def to_scorm_response(e: Enrollment) -> ScormDataResponse:
    return ScormDataResponse(
        enrollment_id=e.id,
        lesson_location=e.scorm_lesson_location,
        suspend_data=e.scorm_suspend_data,
        total_time=e.scorm_total_time or 0,
        score=e.scorm_score,
        completion_status=e.scorm_completion_status,
        success_status=e.scorm_success_status,
        progress=e.progress,
        status=e.status,
    )


class ScormService:
    def __init__(self, db: DBSession):
        self.db = db

    def get(self, user: User, enrollment_id: str) -> ScormDataResponse:
        return to_scorm_response(owned_enrollment(self.db, user, enrollment_id))

    def update(self, user: User, req: ScormUpdateRequest) -> ScormDataResponse:
        """
        Apply the fields present in `req`. Session time accumulates; a
        `completed` completion status completes the enrollment and wins over a
        partial progress measure sent in the same call.
        """
        enrollment = owned_enrollment(self.db, user, req.enrollment_id)
        now = datetime.utcnow()

        if req.lesson_location is not None:
            enrollment.scorm_lesson_location = req.lesson_location
        if req.suspend_data is not None:
            enrollment.scorm_suspend_data = req.suspend_data
        if req.session_time is not None:
            enrollment.scorm_total_time = (enrollment.scorm_total_time or 0) + req.session_time
        if req.score is not None:
            enrollment.scorm_score = req.score
        if req.success_status is not None:
            enrollment.scorm_success_status = req.success_status

        if req.progress_measure is not None:
            enrollment.progress = clamp_percent(req.progress_measure * 100)
            if 0 < req.progress_measure < 1:
                enrollment.status = "in_progress"
                if enrollment.started_at is None:
                    enrollment.started_at = now

        if req.completion_status is not None:
            enrollment.scorm_completion_status = req.completion_status
            if req.completion_status == "completed":
                enrollment.status = "completed"
                if enrollment.started_at is None:
                    enrollment.started_at = now
                if enrollment.completed_at is None:
                    enrollment.completed_at = now

        enrollment.last_accessed_at = now
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info(
            "scorm update enrollment=%s status=%s progress=%s total_time=%s",
            enrollment.id,
            enrollment.status,
            enrollment.progress,
            enrollment.scorm_total_time,
        )
        return to_scorm_response(enrollment)
