"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# The app reads its settings at import time; point it at throwaway storage first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnova-logs-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

# Add project root and src to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from progression.models import (  # noqa: E402
    CourseContent,
    LearnerProgress,
    Lesson,
    Module,
    QubitsModule,
    Question,
    QuestionOption,
    Quiz,
)


def make_question(module_id: str, n: int, correct=("a",), points: int = 1) -> Question:
    return Question(
        id=f"{module_id}-q{n}",
        text=f"Question {n}",
        options=[QuestionOption(id=o, text=o.upper()) for o in ("a", "b", "c", "d")],
        correct_option_ids=list(correct),
        points=points,
        question_number=n,
    )


def make_module(number: int, lessons: int = 2, questions: int = 4, **quiz_kwargs) -> Module:
    module_id = f"m{number}"
    return Module(
        id=module_id,
        number=number,
        title=f"Module {number}",
        lessons=[Lesson(id=f"{module_id}-l{i + 1}", title=f"Lesson {i + 1}") for i in range(lessons)],
        quiz=Quiz(
            id=f"{module_id}-quiz",
            title=f"Module {number} Quiz",
            questions=[make_question(module_id, i + 1) for i in range(questions)],
            **quiz_kwargs,
        ),
    )


def make_content(modules: int = 3, lessons: int = 2, questions: int = 4, course_code: str = "AI101") -> CourseContent:
    mods = [make_module(i + 1, lessons, questions) for i in range(modules)]
    return CourseContent(
        course_id=f"course-{course_code}",
        course_code=course_code,
        title="Applied AI",
        modules=mods,
        qubits_modules=[
            QubitsModule(
                id=f"qubits-{m.number}",
                module_id=m.id,
                title=f"Module {m.number}",
                subtitle=m.title,
                total_questions=len(m.quiz.questions),
                unattempted=len(m.quiz.questions),
            )
            for m in mods
        ],
        learner_progress=LearnerProgress(total_lessons=modules * lessons),
    )


@pytest.fixture
def content() -> CourseContent:
    """Fresh 3 modules x 2 lessons x 4 questions course."""
    return make_content()


@pytest.fixture
def build_content():
    """Factory fixture: build_content(modules=3, lessons=2, questions=4, course_code="AI101")."""
    return make_content


@pytest.fixture
def build_module():
    """Factory fixture: build_module(number, lessons=2, questions=4, **quiz_kwargs)."""
    return make_module
