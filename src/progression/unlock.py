"""
Unlock engine: derives module, lesson and quiz lock state from completion facts.

Pure and total. Accepts any module list (fresh, partially completed, restored
from a snapshot) and returns a self-consistent copy; running it again on its own
output changes nothing.

Rules, in module order:
  1. module[0] is always open; if locked it becomes in_progress.
  2. module[i] opens (locked -> not_started) when module[i-1].progress >= 70
     or module[i-1].quiz is passed. Both triggers are honoured.
  3. Inside an open module, a completed lesson opens the lesson after it.
  4. A quiz opens once every lesson of its module is completed; otherwise it is
     locked, even after a pass. The pass still opens the next module.
Modules are never re-locked.
"""

from __future__ import annotations

from typing import List, Sequence

from progression.models import LessonStatus, Module, ModuleStatus, QuizStatus, UnlockMode


MODULE_UNLOCK_THRESHOLD = 70


def previous_module_satisfied(prev: Module) -> bool:
    """True when `prev` unlocks the module after it (progress path or quiz path)."""
    return prev.progress >= MODULE_UNLOCK_THRESHOLD or prev.quiz.status == QuizStatus.PASSED


def all_lessons_completed(module: Module) -> bool:
    # vacuously true for a module without lessons
    return all(lesson.status == LessonStatus.COMPLETED for lesson in module.lessons)


def _open_module(module: Module, *, first: bool, mode: UnlockMode) -> None:
    module.status = ModuleStatus.IN_PROGRESS if first else ModuleStatus.NOT_STARTED
    for idx, lesson in enumerate(module.lessons):
        if lesson.status != LessonStatus.LOCKED:
            continue
        if mode == UnlockMode.ALL_LESSONS or idx == 0:
            lesson.status = LessonStatus.NOT_STARTED


def _lock_contents(module: Module) -> None:
    for lesson in module.lessons:
        lesson.status = LessonStatus.LOCKED
    module.quiz.status = QuizStatus.LOCKED


def _open_following_lessons(module: Module) -> None:
    for idx in range(len(module.lessons) - 1):
        current, following = module.lessons[idx], module.lessons[idx + 1]
        if current.status == LessonStatus.COMPLETED and following.status == LessonStatus.LOCKED:
            following.status = LessonStatus.NOT_STARTED


def _gate_quiz(module: Module) -> None:
    quiz = module.quiz
    if all_lessons_completed(module):
        if quiz.status == QuizStatus.LOCKED:
            quiz.status = QuizStatus.NOT_STARTED
    elif quiz.status != QuizStatus.LOCKED:
        # content gained a lesson the learner has not finished; best_score is kept
        quiz.status = QuizStatus.LOCKED


def derive_unlocks(
    modules: Sequence[Module],
    mode: UnlockMode = UnlockMode.ALL_LESSONS,
) -> List[Module]:
    """Return a derived copy of `modules` with lock state made consistent."""
    derived = [m.model_copy(deep=True) for m in modules]

    opens_next = False
    for idx, module in enumerate(derived):
        if module.status == ModuleStatus.LOCKED:
            if idx == 0 or opens_next:
                _open_module(module, first=idx == 0, mode=mode)
            else:
                _lock_contents(module)
                opens_next = previous_module_satisfied(module)
                continue

        _open_following_lessons(module)
        # read the quiz result before gating can lock the quiz again
        opens_next = previous_module_satisfied(module)
        _gate_quiz(module)

    return derived
