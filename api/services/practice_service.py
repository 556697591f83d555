"""
Qubits practice sessions over HTTP: question selection and result recording.
"""

from sqlalchemy.orm import Session as DBSession

from api.schemas.practice_schemas import (
    PracticeCompleteRequest,
    PracticeCompleteResponse,
    PracticeQuestion,
    PracticeStartRequest,
)
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService
from api.utils.logger import configure_logging
from progression.models import Question, UnlockMode
from progression.practice import PracticeAnswer
from progression.sync import ProgressSync

logger = configure_logging()


class PracticeService:
    def __init__(self, db: DBSession, sync: ProgressSync, mode: UnlockMode = UnlockMode.ALL_LESSONS):
        self.db = db
        self.progress = ProgressService(db, sync, mode)

    def start(self, user: User, req: PracticeStartRequest) -> list[PracticeQuestion]:
        _, session = self.progress.open_by_code(user, req.course_code)
        questions = session.start_practice(req.module_ids, req.question_counts)
        return [
            PracticeQuestion(
                id=q.id,
                text=q.text,
                question_type=q.question_type,
                options=[o.model_dump() for o in q.options],
                correct_option_ids=q.correct_option_ids,
            )
            for q in questions
        ]

    def complete(self, user: User, req: PracticeCompleteRequest) -> PracticeCompleteResponse:
        _, session = self.progress.open_by_code(user, req.course_code)

        by_id: dict[str, Question] = {q.id: q for m in session.state.modules for q in m.quiz.questions}
        unknown = [qid for qid in req.question_ids if qid not in by_id]
        if unknown:
            logger.warning("practice session references unknown questions %s", unknown)
        questions = [by_id[qid] for qid in dict.fromkeys(req.question_ids) if qid in by_id]

        outcome = session.complete_practice(
            questions,
            [PracticeAnswer(question_id=r.question_id, is_correct=r.is_correct) for r in req.results],
            req.elapsed_seconds,
        )
        result = outcome.result
        self.progress.gamification.practiced(user.id, result.xp_awarded)
        self.db.commit()

        state = session.state
        return PracticeCompleteResponse(
            score=result.score,
            xp_awarded=result.xp_awarded,
            total_questions=result.total_questions,
            correct_count=result.correct_count,
            ignored_question_ids=result.ignored_question_ids,
            qubits_modules=state.qubits_modules,
            qubits_dashboard=state.qubits_dashboard,
        )
