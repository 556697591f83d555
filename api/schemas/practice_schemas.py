"""
Qubits practice session schemas.
"""

from typing import Optional

from pydantic import Field

from api.schemas.envelope_schemas import WireModel
from progression.models import QubitsDashboard, QubitsModule


class PracticeStartRequest(WireModel):
    course_code: str
    module_ids: list[str]
    question_counts: Optional[dict[str, int]] = None


class PracticeQuestion(WireModel):
    """A practice question as shown to the learner; the answer key is included for client-side checking."""
    id: str
    text: str
    question_type: str
    options: list[dict]
    correct_option_ids: list[str]


class PracticeStartResponse(WireModel):
    questions: list[PracticeQuestion]


class PracticeResultItem(WireModel):
    question_id: str
    is_correct: bool


class PracticeCompleteRequest(WireModel):
    course_code: str
    question_ids: list[str]
    results: list[PracticeResultItem] = Field(default_factory=list)
    elapsed_seconds: int = Field(default=0, ge=0)


class PracticeCompleteResponse(WireModel):
    score: int
    xp_awarded: int
    total_questions: int
    correct_count: int
    ignored_question_ids: list[str]
    qubits_modules: list[QubitsModule]
    qubits_dashboard: QubitsDashboard
