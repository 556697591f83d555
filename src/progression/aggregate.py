"""
Progress aggregation: lesson progress -> module progress/status -> course totals.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from progression.models import (
    LearnerProgress,
    LessonStatus,
    Module,
    ModuleStatus,
    QuizStatus,
)
from progression.numbers import clamp_percent, percent


def recompute_module(module: Module) -> Module:
    """Module progress is the rounded mean of its lessons; status follows completion."""
    out = module.model_copy(deep=True)
    lessons = out.lessons
    if not lessons:
        out.progress = 0
        return out

    for lesson in lessons:
        lesson.progress = clamp_percent(lesson.progress)

    out.progress = clamp_percent(sum(l.progress for l in lessons) / len(lessons))

    if out.status == ModuleStatus.LOCKED:
        return out
    if all(l.status == LessonStatus.COMPLETED for l in lessons):
        out.status = ModuleStatus.COMPLETED
    elif any(l.progress > 0 or l.status in (LessonStatus.IN_PROGRESS, LessonStatus.COMPLETED) for l in lessons):
        out.status = ModuleStatus.IN_PROGRESS
    return out


def recompute_course(
    modules: Sequence[Module],
    prior: Optional[LearnerProgress] = None,
    *,
    now: Optional[datetime] = None,
) -> LearnerProgress:
    """
    Roll lesson and quiz state up into the course-level LearnerProgress.

    Counters that are not derivable from modules (questions attempted/correct,
    time spent) are carried over from `prior`.
    """
    base = prior.model_copy(deep=True) if prior is not None else LearnerProgress()
    lessons = [lesson for module in modules for lesson in module.lessons]
    total = len(lessons)
    completed = sum(1 for lesson in lessons if lesson.status == LessonStatus.COMPLETED)

    base.total_lessons = total
    base.lessons_completed = completed
    base.overall_progress = clamp_percent(sum(l.progress for l in lessons) / total) if total else 0
    base.quizzes_passed = sum(1 for m in modules if m.quiz.status == QuizStatus.PASSED)
    base.average_score = percent(base.questions_correct, base.questions_attempted)
    if total and completed == total and base.quizzes_passed == len(modules):
        base.certificate_earned = True
    base.last_accessed_at = now or datetime.now(timezone.utc)
    return base
