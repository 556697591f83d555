"""
Snapshot reconciliation: merge freshly loaded course content with a saved snapshot.

Fresh content wins for everything that is not progress (titles, media, quiz
questions, passing score). The snapshot wins for progress fields. When the
snapshot's shape no longer matches the content (modules or lessons added or
removed) it is discarded and the learner starts from a clean slate.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from progression.errors import ShapeMismatch
from progression.models import (
    CourseContent,
    CourseState,
    LearnerProgress,
    LessonStatus,
    Module,
    ModuleStatus,
    QubitsDashboard,
    QubitsModule,
    QuizStatus,
    UnlockMode,
)
from progression.store import Snapshot
from progression.unlock import derive_unlocks

logger = logging.getLogger(__name__)


def fresh_modules(modules: Sequence[Module], mode: UnlockMode = UnlockMode.ALL_LESSONS) -> list[Module]:
    """Clean-slate modules: module[0] in progress, everything else locked, no progress."""
    out: list[Module] = []
    for idx, module in enumerate(modules):
        m = module.model_copy(deep=True)
        m.status = ModuleStatus.IN_PROGRESS if idx == 0 else ModuleStatus.LOCKED
        m.progress = 0
        for li, lesson in enumerate(m.lessons):
            if idx == 0 and (mode == UnlockMode.ALL_LESSONS or li == 0):
                lesson.status = LessonStatus.NOT_STARTED
            else:
                lesson.status = LessonStatus.LOCKED
            lesson.progress = 0
            lesson.last_position = 0
            lesson.watched_seconds = 0
        m.quiz.status = QuizStatus.LOCKED
        m.quiz.best_score = 0
        m.quiz.attempts = 0
        out.append(m)
    return derive_unlocks(out, mode)


def check_shape(fresh: Sequence[Module], saved: Sequence[Module]) -> None:
    if len(fresh) != len(saved):
        raise ShapeMismatch(
            "module count changed",
            details={"fresh": len(fresh), "saved": len(saved)},
        )
    for idx, (f, s) in enumerate(zip(fresh, saved)):
        if len(f.lessons) != len(s.lessons):
            raise ShapeMismatch(
                "lesson count changed",
                details={"module": idx, "fresh": len(f.lessons), "saved": len(s.lessons)},
            )


def _merge_module(fresh: Module, saved: Module) -> Module:
    merged = fresh.model_copy(deep=True)
    merged.status = saved.status
    merged.progress = saved.progress
    for lesson, saved_lesson in zip(merged.lessons, saved.lessons):
        lesson.status = saved_lesson.status
        lesson.progress = saved_lesson.progress
        lesson.last_position = max(saved_lesson.last_position, lesson.last_position)
        lesson.watched_seconds = max(saved_lesson.watched_seconds, lesson.watched_seconds)
    merged.quiz.status = saved.quiz.status
    merged.quiz.best_score = saved.quiz.best_score
    merged.quiz.attempts = saved.quiz.attempts
    return merged


def reconcile(
    fresh_course_modules: Sequence[Module],
    fresh_qubits: Sequence[QubitsModule],
    fresh_dashboard: QubitsDashboard,
    fresh_progress: LearnerProgress,
    saved: Optional[Snapshot],
    mode: UnlockMode = UnlockMode.ALL_LESSONS,
) -> CourseState:
    """Build the initial in-memory state for a course load. Neither input is mutated."""
    if saved is not None:
        try:
            check_shape(fresh_course_modules, saved.modules)
        except ShapeMismatch as e:
            logger.info("discarding saved snapshot: %s %s", e.message, e.details)
            saved = None

    if saved is None:
        return CourseState(
            modules=fresh_modules(fresh_course_modules, mode),
            qubits_modules=[q.model_copy(deep=True) for q in fresh_qubits],
            qubits_dashboard=fresh_dashboard.model_copy(deep=True),
            progress=fresh_progress.model_copy(deep=True),
            restored=False,
        )

    merged = [_merge_module(f, s) for f, s in zip(fresh_course_modules, saved.modules)]
    qubits = saved.qubits_modules if saved.qubits_modules is not None else fresh_qubits
    dashboard = saved.qubits_dashboard if saved.qubits_dashboard is not None else fresh_dashboard
    progress = saved.progress if saved.progress is not None else fresh_progress
    return CourseState(
        modules=derive_unlocks(merged, mode),
        qubits_modules=[q.model_copy(deep=True) for q in qubits],
        qubits_dashboard=dashboard.model_copy(deep=True),
        progress=progress.model_copy(deep=True),
        restored=True,
    )


def reconcile_content(
    content: CourseContent,
    saved: Optional[Snapshot],
    mode: UnlockMode = UnlockMode.ALL_LESSONS,
) -> CourseState:
    return reconcile(
        content.modules,
        content.qubits_modules,
        content.qubits_dashboard,
        content.learner_progress,
        saved,
        mode,
    )


def reset_state(content: CourseContent, mode: UnlockMode = UnlockMode.ALL_LESSONS) -> CourseState:
    """Zeroed state for a user-initiated reset. Applying it twice gives the same result."""
    qubits = []
    for qm in content.qubits_modules:
        q = qm.model_copy(deep=True)
        q.attempted_questions = 0
        q.correct_answers = 0
        q.incorrect_answers = 0
        q.accuracy = 0
        q.unattempted = q.total_questions
        qubits.append(q)
    total_lessons = sum(len(m.lessons) for m in content.modules)
    return CourseState(
        modules=fresh_modules(content.modules, mode),
        qubits_modules=qubits,
        qubits_dashboard=QubitsDashboard(),
        progress=LearnerProgress(total_lessons=total_lessons),
        restored=False,
    )


def fresh_state(content: CourseContent, mode: UnlockMode = UnlockMode.ALL_LESSONS) -> CourseState:
    """State for a learner with no saved snapshot."""
    return reconcile_content(content, None, mode)
