"""
Qubits practice sessions: question selection, grading and counter updates.

Practice answers are graded client-side; a session reports one
`{question_id, is_correct}` result per answered question. Questions are
attributed to a practice module by id prefix: `<module_id>-<suffix>`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from progression.errors import NoEligibleQuestions
from progression.models import CourseState, LearnerProgress, Module, QubitsDashboard, QubitsModule, Question
from progression.numbers import percent, round_half_up

logger = logging.getLogger(__name__)

QUESTION_ID_SEPARATOR = "-"
DEFAULT_QUESTIONS_PER_MODULE = 10
STREAK_PASS_SCORE = 70
XP_DIVISOR = 4


class PracticeAnswer(BaseModel):
    question_id: str
    is_correct: bool


class ModuleDelta(BaseModel):
    qubits_module_id: str
    attempted: int = 0
    correct: int = 0
    incorrect: int = 0


class DashboardDelta(BaseModel):
    quizzes: int = 1
    questions_attempted: int = 0
    questions_correct: int = 0
    elapsed_seconds: int = 0
    passed: bool = False


class PracticeResult(BaseModel):
    score: int
    xp_awarded: int
    total_questions: int
    correct_count: int
    dashboard_delta: DashboardDelta
    per_module_delta: List[ModuleDelta] = Field(default_factory=list)
    ignored_question_ids: List[str] = Field(default_factory=list)


def module_for_question(question_id: str, qubits_modules: Sequence[QubitsModule]) -> Optional[QubitsModule]:
    """Longest `module_id` that prefixes the question id (followed by the separator)."""
    best: Optional[QubitsModule] = None
    for qm in qubits_modules:
        prefix = qm.module_id + QUESTION_ID_SEPARATOR
        if question_id.startswith(prefix) and (best is None or len(qm.module_id) > len(best.module_id)):
            best = qm
    return best


def select_practice_questions(
    modules: Sequence[Module],
    qubits_modules: Sequence[QubitsModule],
    qubits_module_ids: Sequence[str],
    question_counts: Optional[Mapping[str, int]] = None,
) -> List[Question]:
    """First N questions of each selected module's quiz, in selection order."""
    counts = question_counts or {}
    by_qubits_id = {qm.id: qm for qm in qubits_modules}
    by_module_id = {m.id: m for m in modules}

    selected: list[Question] = []
    for qid in qubits_module_ids:
        qm = by_qubits_id.get(qid)
        module = by_module_id.get(qm.module_id) if qm else None
        if module is None:
            logger.warning("practice selection skipping unknown module %s", qid)
            continue
        count = counts.get(qid) or DEFAULT_QUESTIONS_PER_MODULE
        selected.extend(q.model_copy(deep=True) for q in module.quiz.questions[: max(0, count)])

    if not selected:
        raise NoEligibleQuestions(
            "No practice questions available for the selected modules",
            details={"module_ids": list(qubits_module_ids)},
        )
    return selected


def grade_session(
    questions: Sequence[Question],
    results: Sequence[PracticeAnswer],
    elapsed_seconds: int,
    qubits_modules: Sequence[QubitsModule] = (),
) -> PracticeResult:
    """Score a finished practice session. Raises NoEligibleQuestions for an empty session."""
    if not questions:
        raise NoEligibleQuestions("Practice session has no questions")

    session_ids = {q.id for q in questions}
    eligible: Dict[str, bool] = {}
    ignored: list[str] = []
    for r in results:
        if r.question_id not in session_ids:
            ignored.append(r.question_id)
            continue
        # a repeated result for the same question keeps the last answer
        eligible[r.question_id] = r.is_correct
    if ignored:
        logger.warning("practice session ignoring results for unknown questions %s", ignored)

    total = len(session_ids)
    correct = sum(1 for ok in eligible.values() if ok)
    score = percent(correct, total)

    deltas: Dict[str, ModuleDelta] = {}
    for question_id, ok in eligible.items():
        qm = module_for_question(question_id, qubits_modules)
        if qm is None:
            continue
        delta = deltas.setdefault(qm.id, ModuleDelta(qubits_module_id=qm.id))
        delta.attempted += 1
        if ok:
            delta.correct += 1
        else:
            delta.incorrect += 1

    return PracticeResult(
        score=score,
        xp_awarded=round_half_up(score / XP_DIVISOR),
        total_questions=total,
        correct_count=correct,
        dashboard_delta=DashboardDelta(
            questions_attempted=len(eligible),
            questions_correct=correct,
            elapsed_seconds=max(0, int(elapsed_seconds)),
            passed=score >= STREAK_PASS_SCORE,
        ),
        per_module_delta=list(deltas.values()),
        ignored_question_ids=ignored,
    )


def apply_module_deltas(qubits_modules: Sequence[QubitsModule], deltas: Sequence[ModuleDelta]) -> List[QubitsModule]:
    by_id = {d.qubits_module_id: d for d in deltas}
    out: list[QubitsModule] = []
    for qm in qubits_modules:
        updated = qm.model_copy(deep=True)
        delta = by_id.get(qm.id)
        if delta is not None and delta.attempted > 0:
            updated.attempted_questions += delta.attempted
            updated.correct_answers += delta.correct
            updated.incorrect_answers += delta.incorrect
            updated.unattempted = max(0, updated.total_questions - updated.attempted_questions)
            updated.accuracy = percent(updated.correct_answers, updated.attempted_questions)
        out.append(updated)
    return out


def apply_dashboard_delta(
    dashboard: QubitsDashboard,
    delta: DashboardDelta,
    *,
    now: Optional[datetime] = None,
) -> QubitsDashboard:
    """Running totals; accuracy is correct/attempted over all sessions, not a mean of scores."""
    out = dashboard.model_copy(deep=True)
    out.total_quizzes += delta.quizzes
    out.total_questions_attempted += delta.questions_attempted
    out.total_questions_correct += delta.questions_correct
    out.overall_accuracy = percent(out.total_questions_correct, out.total_questions_attempted)
    out.time_spent_seconds += delta.elapsed_seconds
    out.streak = out.streak + 1 if delta.passed else 0
    out.last_practice_date = now or datetime.now(timezone.utc)
    return out


def apply_session_to_progress(progress: LearnerProgress, delta: DashboardDelta) -> LearnerProgress:
    out = progress.model_copy(deep=True)
    out.questions_attempted += delta.questions_attempted
    out.questions_correct += delta.questions_correct
    out.average_score = percent(out.questions_correct, out.questions_attempted)
    out.total_time_spent += delta.elapsed_seconds
    return out


def apply_session(state: CourseState, result: PracticeResult, *, now: Optional[datetime] = None) -> CourseState:
    """Fold a graded session into Qubits counters, the dashboard and LearnerProgress."""
    out = state.model_copy(deep=True)
    out.qubits_modules = apply_module_deltas(out.qubits_modules, result.per_module_delta)
    out.qubits_dashboard = apply_dashboard_delta(out.qubits_dashboard, result.dashboard_delta, now=now)
    out.progress = apply_session_to_progress(out.progress, result.dashboard_delta)
    return out
