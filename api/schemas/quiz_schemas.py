"""
Quiz submission wire contract.
"""

from typing import Optional

from pydantic import Field

from api.schemas.envelope_schemas import WireModel


class SubmittedAnswer(WireModel):
    question_id: str
    selected_answers: list[str] = Field(default_factory=list)


class QuizSubmitRequest(WireModel):
    enrollment_id: str
    quiz_id: str
    answers: list[SubmittedAnswer] = Field(default_factory=list)
    duration_seconds: Optional[int] = Field(default=None, ge=0)


class AnswerResult(WireModel):
    question_id: str
    selected_answers: list[str]
    is_correct: bool
    correct_answers: Optional[list[str]] = None


class QuizSubmitResponse(WireModel):
    attempt_id: str
    score: int
    passed: bool
    total_questions: int
    correct_answers: int
    attempt_number: int
    passing_score: int
    best_score: int
    xp_awarded: int = 0
    answers: Optional[list[AnswerResult]] = None
