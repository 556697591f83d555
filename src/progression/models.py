"""
Domain types for learner progress.

Content fields (titles, questions, media) come from the course source and are
read-only for a session. Progress-bearing fields (status, progress, last_position,
best_score, counters) are what gets derived, merged and persisted.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from progression.numbers import format_time_spent


DEFAULT_PASSING_SCORE = 70


class LessonStatus(str, Enum):
    LOCKED = "locked"
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Modules move through the same states as lessons.
ModuleStatus = LessonStatus


class QuizStatus(str, Enum):
    LOCKED = "locked"
    NOT_STARTED = "not_started"
    PASSED = "passed"
    FAILED = "failed"


class UnlockMode(str, Enum):
    """How many lessons open up when a module unlocks."""
    ALL_LESSONS = "all_lessons"
    FIRST_LESSON = "first_lesson"


class QuestionOption(BaseModel):
    id: str
    text: str = ""


class Question(BaseModel):
    id: str
    text: str = ""
    question_type: str = "single_choice"
    options: List[QuestionOption] = Field(default_factory=list)
    correct_option_ids: List[str] = Field(default_factory=list)
    points: int = 1
    question_number: int = 0

    @property
    def option_ids(self) -> List[str]:
        return [o.id for o in self.options]


class Quiz(BaseModel):
    id: str
    title: str = ""
    questions: List[Question] = Field(default_factory=list)
    passing_score: int = Field(default=DEFAULT_PASSING_SCORE, ge=0, le=100)
    max_attempts: Optional[int] = None
    show_correct_answers: bool = False
    status: QuizStatus = QuizStatus.LOCKED
    best_score: int = 0
    attempts: int = 0


class Lesson(BaseModel):
    id: str
    title: str = ""
    content_type: str = "video"  # video|article
    content_ref: Optional[str] = None  # video url / playback id / article slug
    duration_seconds: Optional[int] = None
    status: LessonStatus = LessonStatus.LOCKED
    progress: int = 0
    last_position: int = 0
    watched_seconds: int = 0


class Module(BaseModel):
    id: str
    number: int
    title: str = ""
    lessons: List[Lesson] = Field(default_factory=list)
    quiz: Quiz
    status: ModuleStatus = ModuleStatus.LOCKED
    progress: int = 0


class LearnerProgress(BaseModel):
    overall_progress: int = 0
    lessons_completed: int = 0
    total_lessons: int = 0
    quizzes_passed: int = 0
    questions_attempted: int = 0
    questions_correct: int = 0
    average_score: int = 0
    total_time_spent: int = 0  # seconds
    last_accessed_at: Optional[datetime] = None
    certificate_earned: bool = False


class QubitsModule(BaseModel):
    """Practice-bank view of one course module. Counters are derived from practice sessions."""
    id: str
    module_id: str
    title: str = ""
    subtitle: str = ""
    total_questions: int = 0
    attempted_questions: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    unattempted: int = 0
    accuracy: int = 0


class QubitsDashboard(BaseModel):
    total_quizzes: int = 0
    total_questions_attempted: int = 0
    total_questions_correct: int = 0
    overall_accuracy: int = 0
    time_spent_seconds: int = 0
    streak: int = 0
    last_practice_date: Optional[datetime] = None

    @computed_field  # type: ignore[misc]
    @property
    def time_spent(self) -> str:
        return format_time_spent(self.time_spent_seconds)


class CourseContent(BaseModel):
    """What the content source returns for one course load."""
    course_id: str
    course_code: str
    title: str = ""
    modules: List[Module] = Field(default_factory=list)
    qubits_modules: List[QubitsModule] = Field(default_factory=list)
    qubits_dashboard: QubitsDashboard = Field(default_factory=QubitsDashboard)
    learner_progress: LearnerProgress = Field(default_factory=LearnerProgress)

    @property
    def total_modules(self) -> int:
        return len(self.modules)


class CourseState(BaseModel):
    """In-memory learner state for one (user, course) pair."""
    modules: List[Module] = Field(default_factory=list)
    qubits_modules: List[QubitsModule] = Field(default_factory=list)
    qubits_dashboard: QubitsDashboard = Field(default_factory=QubitsDashboard)
    progress: LearnerProgress = Field(default_factory=LearnerProgress)
    restored: bool = False

    def find_lesson(self, lesson_id: str) -> Optional[tuple[int, int]]:
        for mi, module in enumerate(self.modules):
            for li, lesson in enumerate(module.lessons):
                if lesson.id == lesson_id:
                    return mi, li
        return None

    def find_quiz(self, quiz_id: str) -> Optional[int]:
        for mi, module in enumerate(self.modules):
            if module.quiz.id == quiz_id:
                return mi
        return None
