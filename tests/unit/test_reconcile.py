"""Unit tests for snapshot reconciliation and reset."""
import pytest

from progression.errors import ShapeMismatch
from progression.models import LearnerProgress, LessonStatus, ModuleStatus, QubitsDashboard, QuizStatus
from progression.reconcile import check_shape, fresh_state, reconcile, reconcile_content, reset_state
from progression.store import Snapshot


def saved_progress(content):
    """A snapshot where module 1 is finished and its quiz passed."""
    state = fresh_state(content)
    m = state.modules[0]
    for lesson in m.lessons:
        lesson.status = LessonStatus.COMPLETED
        lesson.progress = 100
        lesson.last_position = 540
    m.status = ModuleStatus.COMPLETED
    m.progress = 100
    m.quiz.status = QuizStatus.PASSED
    m.quiz.best_score = 75
    m.quiz.attempts = 2
    return Snapshot(
        modules=state.modules,
        qubits_modules=state.qubits_modules,
        qubits_dashboard=QubitsDashboard(total_quizzes=3, streak=2),
        progress=LearnerProgress(total_lessons=6, lessons_completed=2, questions_attempted=12),
    )


@pytest.mark.unit
class TestFreshFallback:
    def test_no_snapshot_gives_fresh_state(self, content):
        state = reconcile_content(content, None)
        assert state.restored is False
        assert state.modules[0].status == ModuleStatus.IN_PROGRESS
        assert all(m.status == ModuleStatus.LOCKED for m in state.modules[1:])

    def test_module_added_discards_snapshot(self, build_content):
        saved = saved_progress(build_content(modules=2))
        state = reconcile_content(build_content(modules=3), saved)
        assert state.restored is False
        assert state.modules[0].status == ModuleStatus.IN_PROGRESS
        assert all(l.status == LessonStatus.NOT_STARTED for l in state.modules[0].lessons)
        assert [m.status for m in state.modules[1:]] == [ModuleStatus.LOCKED, ModuleStatus.LOCKED]
        assert all(m.quiz.status == QuizStatus.LOCKED for m in state.modules)
        assert state.qubits_dashboard.total_quizzes == 0

    def test_lesson_added_discards_snapshot(self, build_content):
        saved = saved_progress(build_content(lessons=2))
        state = reconcile_content(build_content(lessons=3), saved)
        assert state.restored is False

    def test_check_shape_reports_details(self, build_content):
        with pytest.raises(ShapeMismatch) as exc:
            check_shape(build_content(modules=3).modules, build_content(modules=2).modules)
        assert exc.value.details == {"fresh": 3, "saved": 2}


@pytest.mark.unit
class TestMerge:
    def test_progress_fields_come_from_snapshot(self, content):
        state = reconcile_content(content, saved_progress(content))
        assert state.restored is True
        m = state.modules[0]
        assert m.status == ModuleStatus.COMPLETED
        assert m.progress == 100
        assert [l.last_position for l in m.lessons] == [540, 540]
        assert m.quiz.status == QuizStatus.PASSED
        assert m.quiz.best_score == 75
        assert m.quiz.attempts == 2
        assert state.modules[1].status == ModuleStatus.NOT_STARTED
        assert state.qubits_dashboard.streak == 2
        assert state.progress.questions_attempted == 12

    def test_content_comes_from_fresh_data(self, content):
        saved = saved_progress(content)
        fresh = content.model_copy(deep=True)
        fresh.modules[0].title = "Renamed"
        fresh.modules[0].quiz.passing_score = 80
        fresh.modules[0].quiz.questions[0].text = "Updated wording"
        state = reconcile_content(fresh, saved)
        assert state.modules[0].title == "Renamed"
        assert state.modules[0].quiz.passing_score == 80
        assert state.modules[0].quiz.questions[0].text == "Updated wording"

    def test_position_never_regresses(self, content):
        fresh = content.model_copy(deep=True)
        fresh.modules[0].lessons[0].last_position = 900
        state = reconcile_content(fresh, saved_progress(content))
        assert state.modules[0].lessons[0].last_position == 900
        assert state.modules[0].lessons[1].last_position == 540

    def test_missing_optional_parts_use_fresh_values(self, content):
        saved = saved_progress(content)
        partial = Snapshot(modules=saved.modules)
        state = reconcile_content(content, partial)
        assert state.restored is True
        assert state.qubits_modules == content.qubits_modules
        assert state.progress.total_lessons == 6

    def test_inputs_not_mutated(self, content):
        saved = saved_progress(content)
        before_saved = saved.model_copy(deep=True)
        before_content = content.model_copy(deep=True)
        reconcile(content.modules, content.qubits_modules, content.qubits_dashboard, content.learner_progress, saved)
        assert saved == before_saved
        assert content == before_content

    def test_deterministic(self, content):
        saved = saved_progress(content)
        assert reconcile_content(content, saved) == reconcile_content(content, saved)


@pytest.mark.unit
class TestReset:
    def test_zeroes_everything(self, content):
        state = reset_state(content)
        assert state.modules[0].status == ModuleStatus.IN_PROGRESS
        assert all(m.quiz.best_score == 0 for m in state.modules)
        assert all(q.attempted_questions == 0 and q.unattempted == q.total_questions for q in state.qubits_modules)
        assert state.qubits_dashboard == QubitsDashboard()
        assert state.progress == LearnerProgress(total_lessons=6)

    def test_idempotent(self, content):
        assert reset_state(content) == reset_state(content)
