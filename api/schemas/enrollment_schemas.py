from typing import Optional

from api.schemas.envelope_schemas import WireModel


class EnrollmentResponse(WireModel):
    id: str
    course_id: str
    course_code: str
    course_title: str
    status: str
    progress: int
    enrolled_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    last_accessed_at: Optional[str] = None


class LessonProgressEntry(WireModel):
    module_id: str
    lesson_id: str
    title: str
    status: str
    progress_percent: int
    last_position: int
    watched_duration: int


class QuizAttemptEntry(WireModel):
    id: str
    quiz_id: str
    attempt_number: int
    score: int
    passed: bool
    total_questions: int
    correct_answers: int
    duration_seconds: Optional[int] = None
    completed_at: Optional[str] = None


class EnrollmentDetailResponse(EnrollmentResponse):
    lesson_progress: list[LessonProgressEntry]
    quiz_attempts: list[QuizAttemptEntry]
