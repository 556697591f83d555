"""
LearnerSession: applies learner events to one (user, course) state, in order.

Each mutation runs the same pipeline: recompute the touched modules, re-derive
unlocks, roll up the course totals, then hand a snapshot to ProgressSync.
Video position ticks are debounced; completions, quiz submissions, practice
results and resets are written immediately.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from progression.aggregate import recompute_course, recompute_module
from progression.errors import Forbidden, NotFound
from progression.grading import GradeResult, apply_grade, apply_grade_to_progress, check_attempts, find_gradable_quiz, grade_quiz
from progression.models import CourseContent, CourseState, LessonStatus, Module, Question, UnlockMode
from progression.numbers import clamp_percent
from progression.practice import PracticeAnswer, PracticeResult, apply_session, grade_session, select_practice_questions
from progression.reconcile import reconcile_content, reset_state
from progression.store import Snapshot
from progression.sync import ProgressSync
from progression.unlock import derive_unlocks

logger = logging.getLogger(__name__)

LESSON_XP = 25
QUIZ_PASS_XP = 50


class LessonOutcome(BaseModel):
    lesson_id: str
    status: LessonStatus
    progress: int
    last_position: int
    watched_seconds: int = 0
    newly_completed: bool = False
    ignored: bool = False
    xp_awarded: int = 0
    saved: bool = False


class QuizOutcome(BaseModel):
    result: GradeResult
    attempt_number: int
    best_score: int
    xp_awarded: int = 0
    saved: bool = False


class PracticeOutcome(BaseModel):
    result: PracticeResult
    saved: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LearnerSession:
    def __init__(
        self,
        user_id: str,
        content: CourseContent,
        state: CourseState,
        sync: ProgressSync,
        mode: UnlockMode = UnlockMode.ALL_LESSONS,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.user_id = user_id
        self.content = content
        self.sync = sync
        self.mode = mode
        self._now = now
        self._state = state

    @classmethod
    def open(
        cls,
        user_id: str,
        content: CourseContent,
        sync: ProgressSync,
        mode: UnlockMode = UnlockMode.ALL_LESSONS,
        now: Callable[[], datetime] = _utcnow,
    ) -> "LearnerSession":
        """Load the saved snapshot (if any) and reconcile it with `content`."""
        saved = sync.load(user_id, content.course_code)
        state = reconcile_content(content, saved, mode)
        logger.info(
            "session opened user=%s course=%s restored=%s",
            user_id,
            content.course_code,
            state.restored,
        )
        return cls(user_id, content, state, sync, mode, now)

    @property
    def course_code(self) -> str:
        return self.content.course_code

    @property
    def state(self) -> CourseState:
        return self._state.model_copy(deep=True)

    def snapshot(self) -> Snapshot:
        s = self._state
        return Snapshot(
            modules=s.modules,
            qubits_modules=s.qubits_modules,
            qubits_dashboard=s.qubits_dashboard,
            progress=s.progress,
            saved_at=self._now(),
        ).model_copy(deep=True)

    def flush(self) -> bool:
        return self.sync.flush(self.user_id, self.course_code)

    def _commit(self, modules: Sequence[Module], *, immediate: bool) -> bool:
        modules = derive_unlocks([recompute_module(m) for m in modules], self.mode)
        self._state.modules = modules
        self._state.progress = recompute_course(modules, self._state.progress, now=self._now())
        return self.sync.request_save(self.user_id, self.course_code, self.snapshot(), immediate=immediate)

    def _locate_lesson(self, lesson_id: str) -> tuple[int, int]:
        found = self._state.find_lesson(lesson_id)
        if found is None:
            raise NotFound("Lesson not found", details={"lesson_id": lesson_id})
        return found

    def record_lesson_progress(
        self,
        lesson_id: str,
        percent: float,
        position: Optional[int] = None,
        watched_seconds: Optional[int] = None,
    ) -> LessonOutcome:
        """
        Apply a playback tick. Progress and position never move backwards; 100%
        completes the lesson. Ticks for a locked lesson are logged and ignored.

        `watched_seconds` is the running total for the lesson; any increase over
        the recorded value is added to the course time spent.
        """
        mi, li = self._locate_lesson(lesson_id)
        modules = [m.model_copy(deep=True) for m in self._state.modules]
        lesson = modules[mi].lessons[li]

        if lesson.status == LessonStatus.LOCKED:
            logger.warning("ignoring progress for locked lesson=%s user=%s", lesson_id, self.user_id)
            return LessonOutcome(
                lesson_id=lesson_id,
                status=lesson.status,
                progress=lesson.progress,
                last_position=lesson.last_position,
                watched_seconds=lesson.watched_seconds,
                ignored=True,
            )

        was_completed = lesson.status == LessonStatus.COMPLETED
        lesson.progress = max(lesson.progress, clamp_percent(percent))
        if position is not None:
            lesson.last_position = max(lesson.last_position, int(position))
        if watched_seconds is not None and watched_seconds > lesson.watched_seconds:
            self._state.progress.total_time_spent += watched_seconds - lesson.watched_seconds
            lesson.watched_seconds = int(watched_seconds)
        if lesson.progress >= 100:
            lesson.status = LessonStatus.COMPLETED
        elif lesson.status == LessonStatus.NOT_STARTED:
            lesson.status = LessonStatus.IN_PROGRESS

        newly_completed = not was_completed and lesson.status == LessonStatus.COMPLETED
        saved = self._commit(modules, immediate=newly_completed)
        return LessonOutcome(
            lesson_id=lesson_id,
            status=lesson.status,
            progress=lesson.progress,
            last_position=lesson.last_position,
            watched_seconds=lesson.watched_seconds,
            newly_completed=newly_completed,
            xp_awarded=LESSON_XP if newly_completed else 0,
            saved=saved,
        )

    def complete_lesson(self, lesson_id: str, position: Optional[int] = None, watched_seconds: Optional[int] = None) -> LessonOutcome:
        mi, li = self._locate_lesson(lesson_id)
        if self._state.modules[mi].lessons[li].status == LessonStatus.LOCKED:
            raise Forbidden("Lesson is locked", details={"lesson_id": lesson_id})
        return self.record_lesson_progress(lesson_id, 100, position, watched_seconds)

    def submit_quiz(self, quiz_id: str, answers: Mapping[str, Iterable[str]], attempts_so_far: Optional[int] = None) -> QuizOutcome:
        """
        Grade and record a quiz attempt.

        `attempts_so_far` lets a caller with an authoritative attempt count (the
        attempts table) override the snapshot's counter.
        """
        quiz = find_gradable_quiz(self._state.modules, quiz_id)
        check_attempts(quiz, attempts_so_far)
        used = quiz.attempts if attempts_so_far is None else attempts_so_far

        result = grade_quiz(quiz, answers)
        modules = apply_grade(self._state.modules, result, self.mode)
        self._state.progress = apply_grade_to_progress(self._state.progress, result)
        saved = self._commit(modules, immediate=True)

        mi = self._state.find_quiz(quiz_id)
        best = self._state.modules[mi].quiz.best_score if mi is not None else result.score
        logger.info(
            "quiz graded user=%s quiz=%s score=%s passed=%s",
            self.user_id,
            quiz_id,
            result.score,
            result.passed,
        )
        return QuizOutcome(
            result=result,
            attempt_number=used + 1,
            best_score=best,
            xp_awarded=QUIZ_PASS_XP if result.passed else 0,
            saved=saved,
        )

    def start_practice(self, qubits_module_ids: Sequence[str], question_counts: Optional[Mapping[str, int]] = None) -> List[Question]:
        return select_practice_questions(
            self._state.modules,
            self._state.qubits_modules,
            qubits_module_ids,
            question_counts,
        )

    def complete_practice(
        self,
        questions: Sequence[Question],
        results: Sequence[PracticeAnswer],
        elapsed_seconds: int,
    ) -> PracticeOutcome:
        # grading raises NoEligibleQuestions before anything is touched
        result = grade_session(questions, results, elapsed_seconds, self._state.qubits_modules)
        self._state = apply_session(self._state, result, now=self._now())
        saved = self._commit(self._state.modules, immediate=True)
        return PracticeOutcome(result=result, saved=saved)

    def reset(self) -> CourseState:
        """Zero every progress field and delete the persisted snapshot."""
        self.sync.reset(self.user_id, self.course_code)
        self._state = reset_state(self.content, self.mode)
        logger.info("progress reset user=%s course=%s", self.user_id, self.course_code)
        return self.state
