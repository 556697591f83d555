from progression.errors import (
    Forbidden,
    MaxAttemptsExceeded,
    NoEligibleQuestions,
    NotFound,
    PayloadValidationError,
    ProgressError,
    ShapeMismatch,
    StoreUnavailable,
)
from progression.models import (
    CourseContent,
    CourseState,
    LearnerProgress,
    Lesson,
    LessonStatus,
    Module,
    ModuleStatus,
    QubitsDashboard,
    QubitsModule,
    Question,
    QuestionOption,
    Quiz,
    QuizStatus,
    UnlockMode,
)
from progression.session import LearnerSession
from progression.store import ProgressStore, Snapshot, snapshot_key
from progression.sync import ProgressSync

__all__ = [
    "CourseContent",
    "CourseState",
    "Forbidden",
    "LearnerProgress",
    "LearnerSession",
    "Lesson",
    "LessonStatus",
    "MaxAttemptsExceeded",
    "Module",
    "ModuleStatus",
    "NoEligibleQuestions",
    "NotFound",
    "PayloadValidationError",
    "ProgressError",
    "ProgressStore",
    "ProgressSync",
    "QubitsDashboard",
    "QubitsModule",
    "Question",
    "QuestionOption",
    "Quiz",
    "QuizStatus",
    "ShapeMismatch",
    "Snapshot",
    "StoreUnavailable",
    "UnlockMode",
    "snapshot_key",
]
