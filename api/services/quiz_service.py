"""
Quiz submission: ownership checks, attempt limits, grading and the attempt record.
"""

from datetime import datetime, timedelta
from uuid import uuid4

from sqlalchemy.orm import Session as DBSession

from api.models.models import Module as DbModule, Quiz as DbQuiz, QuizAttempt
from api.schemas.quiz_schemas import AnswerResult, QuizSubmitRequest, QuizSubmitResponse
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService
from api.utils.logger import configure_logging, log_request
from progression.errors import NotFound
from progression.models import UnlockMode
from progression.sync import ProgressSync

logger = configure_logging()


class QuizService:
    def __init__(self, db: DBSession, sync: ProgressSync, mode: UnlockMode = UnlockMode.ALL_LESSONS):
        self.db = db
        self.progress = ProgressService(db, sync, mode)

    def attempts_used(self, enrollment_id: str, quiz_id: str) -> int:
        return (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.enrollment_id == enrollment_id, QuizAttempt.quiz_id == quiz_id)
            .count()
        )

    def submit(self, user: User, req: QuizSubmitRequest) -> QuizSubmitResponse:
        enrollment = self.progress.get_owned_enrollment(user, req.enrollment_id)
        quiz_row = (
            self.db.query(DbQuiz)
            .join(DbModule, DbQuiz.module_id == DbModule.id)
            .filter(DbQuiz.id == req.quiz_id, DbModule.course_id == enrollment.course_id)
            .first()
        )
        if quiz_row is None:
            raise NotFound("Quiz not found", details={"quiz_id": req.quiz_id})

        course = self.progress.courses.get_allowed_course(user, enrollment.course.code)
        session = self.progress.open_session(user, course)
        used = self.attempts_used(enrollment.id, req.quiz_id)

        answers: dict[str, list[str]] = {}
        for a in req.answers:
            answers[a.question_id] = list(a.selected_answers)

        with log_request(logger, "quiz.submit"):
            outcome = session.submit_quiz(req.quiz_id, answers, attempts_so_far=used)

        result = outcome.result
        completed_at = datetime.utcnow()
        started_at = completed_at - timedelta(seconds=req.duration_seconds) if req.duration_seconds else completed_at
        attempt = QuizAttempt(
            id=str(uuid4()),
            enrollment_id=enrollment.id,
            quiz_id=req.quiz_id,
            user_id=user.id,
            attempt_number=outcome.attempt_number,
            score=result.score,
            passed=result.passed,
            total_questions=result.total_questions,
            correct_answers=result.correct_count,
            answers=[q.model_dump() for q in result.per_question],
            duration_seconds=req.duration_seconds,
            started_at=started_at,
            completed_at=completed_at,
        )
        self.db.add(attempt)
        self.progress.sync_enrollment(enrollment, session.state.progress)
        if result.passed:
            self.progress.gamification.quiz_passed(user.id, outcome.xp_awarded)
        self.db.commit()

        return QuizSubmitResponse(
            attempt_id=attempt.id,
            score=result.score,
            passed=result.passed,
            total_questions=result.total_questions,
            correct_answers=result.correct_count,
            attempt_number=outcome.attempt_number,
            passing_score=result.passing_score,
            best_score=outcome.best_score,
            xp_awarded=outcome.xp_awarded,
            answers=[
                AnswerResult(
                    question_id=q.question_id,
                    selected_answers=q.selected_answers,
                    is_correct=q.is_correct,
                    correct_answers=q.correct_answers,
                )
                for q in result.per_question
            ]
            if quiz_row.show_correct_answers
            else None,
        )
