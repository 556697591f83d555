"""
Course list and course-load schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from api.schemas.envelope_schemas import WireModel
from progression.models import LearnerProgress, Module, QubitsDashboard, QubitsModule


class CourseSummary(WireModel):
    id: str
    code: str
    title: str
    description: Optional[str] = None
    total_modules: int
    enrollment_id: Optional[str] = None


class CourseListResponse(WireModel):
    courses: list[CourseSummary]


class CourseLoadResponse(WireModel):
    """Fresh content merged with the learner's saved progress."""
    course: CourseSummary
    modules: list[Module]
    qubits_modules: list[QubitsModule]
    qubits_dashboard: QubitsDashboard
    learner_progress: LearnerProgress
    restored: bool


class QuestionDefinition(BaseModel):
    text: str
    options: list[dict]
    correct_answers: list[str]
    question_type: str = "single_choice"
    points: int = 1


class QuizDefinition(BaseModel):
    title: Optional[str] = None
    passing_score: int = Field(default=70, ge=0, le=100)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    show_correct_answers: bool = False
    questions: list[QuestionDefinition] = Field(default_factory=list)


class LessonDefinition(BaseModel):
    title: str
    content_type: str = "video"
    content_ref: Optional[str] = None
    duration_seconds: Optional[int] = None


class ModuleDefinition(BaseModel):
    title: str
    lessons: list[LessonDefinition] = Field(default_factory=list)
    quiz: Optional[QuizDefinition] = None


class CourseDefinition(BaseModel):
    """Authoring format accepted by `scripts/seed_course.py`."""
    code: str
    title: str
    description: Optional[str] = None
    modules: list[ModuleDefinition] = Field(default_factory=list)
