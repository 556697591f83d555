"""
Quiz grading.

All-or-nothing per question: the submitted option set must equal the correct
set exactly. Score is the weighted share of points earned, rounded to an integer.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from progression.errors import Forbidden, MaxAttemptsExceeded, NotFound
from progression.models import LearnerProgress, Module, Quiz, QuizStatus, UnlockMode
from progression.numbers import percent
from progression.unlock import derive_unlocks

logger = logging.getLogger(__name__)


class QuestionResult(BaseModel):
    question_id: str
    selected_answers: List[str] = Field(default_factory=list)
    is_correct: bool
    correct_answers: Optional[List[str]] = None


class GradeResult(BaseModel):
    quiz_id: str
    score: int
    passed: bool
    passing_score: int
    correct_count: int
    total_questions: int
    per_question: List[QuestionResult] = Field(default_factory=list)
    ignored_question_ids: List[str] = Field(default_factory=list)


def is_exact_match(selected: Iterable[str], correct: Iterable[str]) -> bool:
    return set(selected) == set(correct)


def grade_quiz(quiz: Quiz, answers: Mapping[str, Iterable[str]]) -> GradeResult:
    """
    Grade `answers` (question id -> selected option ids) against `quiz`.

    Unanswered questions count as incorrect. Answers for question ids the quiz
    does not contain are logged and left out of grading.
    """
    known = {q.id for q in quiz.questions}
    ignored = [qid for qid in answers if qid not in known]
    if ignored:
        logger.warning("quiz=%s ignoring answers for unknown questions %s", quiz.id, ignored)

    per_question: list[QuestionResult] = []
    earned = 0
    total_points = 0
    correct_count = 0
    for question in quiz.questions:
        weight = max(0, question.points)
        total_points += weight
        selected = sorted(set(answers.get(question.id, ()) or ()))
        correct = is_exact_match(selected, question.correct_option_ids)
        if correct:
            earned += weight
            correct_count += 1
        per_question.append(
            QuestionResult(
                question_id=question.id,
                selected_answers=selected,
                is_correct=correct,
                correct_answers=list(question.correct_option_ids) if quiz.show_correct_answers else None,
            )
        )

    if not quiz.questions:
        score, passed = 0, False
    else:
        score = percent(earned, total_points)
        passed = score >= quiz.passing_score

    return GradeResult(
        quiz_id=quiz.id,
        score=score,
        passed=passed,
        passing_score=quiz.passing_score,
        correct_count=correct_count,
        total_questions=len(quiz.questions),
        per_question=per_question,
        ignored_question_ids=ignored,
    )


def check_attempts(quiz: Quiz, attempts_so_far: Optional[int] = None) -> None:
    """Raise MaxAttemptsExceeded when the quiz has an attempt limit and it is used up."""
    used = quiz.attempts if attempts_so_far is None else attempts_so_far
    if quiz.max_attempts and used >= quiz.max_attempts:
        raise MaxAttemptsExceeded(
            "Maximum attempts reached",
            details={"quiz_id": quiz.id, "max_attempts": quiz.max_attempts, "attempts": used},
        )


def find_gradable_quiz(modules: Sequence[Module], quiz_id: str) -> Quiz:
    for module in modules:
        if module.quiz.id == quiz_id:
            if module.quiz.status == QuizStatus.LOCKED:
                raise Forbidden("Complete the module lessons to unlock this quiz", details={"quiz_id": quiz_id})
            return module.quiz
    raise NotFound("Quiz not found", details={"quiz_id": quiz_id})


def apply_grade(
    modules: Sequence[Module],
    result: GradeResult,
    mode: UnlockMode = UnlockMode.ALL_LESSONS,
) -> List[Module]:
    """Record `result` on its quiz (status, best score, attempts) and re-derive unlocks."""
    updated = [m.model_copy(deep=True) for m in modules]
    for module in updated:
        if module.quiz.id != result.quiz_id:
            continue
        quiz = module.quiz
        # status follows the latest attempt; unlocked modules stay unlocked
        quiz.status = QuizStatus.PASSED if result.passed else QuizStatus.FAILED
        quiz.best_score = max(quiz.best_score, result.score)
        quiz.attempts += 1
        break
    else:
        raise NotFound("Quiz not found", details={"quiz_id": result.quiz_id})
    return derive_unlocks(updated, mode)


def apply_grade_to_progress(progress: LearnerProgress, result: GradeResult) -> LearnerProgress:
    out = progress.model_copy(deep=True)
    out.questions_attempted += result.total_questions
    out.questions_correct += result.correct_count
    out.average_score = percent(out.questions_correct, out.questions_attempted)
    return out
