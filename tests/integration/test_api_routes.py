"""
API integration tests using FastAPI TestClient with in-memory DB.
"""
import pytest
from fastapi.testclient import TestClient

LEARNER_EMAIL = "learner@example.com"
RESTRICTED_EMAIL = "restricted@example.com"
INSTRUCTOR_EMAIL = "instructor@example.com"
PASSWORD = "testpass123"


def lesson_event(client, enrollment_id, lesson_id, **body):
    payload = {"enrollmentId": enrollment_id, "lessonId": lesson_id, **body}
    return client.post("/api/progress/lesson", json=payload)


def complete(client, enrollment_id, lesson_id):
    response = lesson_event(client, enrollment_id, lesson_id, status="completed")
    assert response.status_code == 200, response.text
    return response.json()["data"]


def submit(client, enrollment_id, quiz_id, correct: int, total: int = 4):
    prefix = quiz_id.rsplit("-", 1)[0]
    answers = [
        {"questionId": f"{prefix}-q{i}", "selectedAnswers": ["a"] if i <= correct else ["b"]}
        for i in range(1, total + 1)
    ]
    return client.post(
        "/api/quiz/submit",
        json={"enrollmentId": enrollment_id, "quizId": quiz_id, "answers": answers, "durationSeconds": 120},
    )


def finish_module_one(client, enrollment_id):
    complete(client, enrollment_id, "m1-l1")
    return complete(client, enrollment_id, "m1-l2")


@pytest.mark.integration
class TestHealthRoutes:
    """Health and root endpoints (no auth)."""

    def test_root_returns_healthy(self, api_client: TestClient):
        response = api_client.get("/")
        assert response.status_code == 200
        assert "Healthy" in response.json()["message"]

    def test_request_id_is_echoed(self, api_client: TestClient):
        response = api_client.get("/", headers={"x-request-id": "abc123"})
        assert response.headers.get("x-request-id") == "abc123"


@pytest.mark.integration
class TestAuthRoutes:
    """Auth: register, login, logout, me."""

    def test_register_success(self, api_client: TestClient):
        response = api_client.post(
            "/auth/register",
            json={
                "email": "newuser@example.com",
                "password": "securepass123",
                "confirm_password": "securepass123",
                "full_name": "New User",
            },
        )
        assert response.status_code == 200
        me = api_client.get("/auth/me").json()
        assert me["email"] == "newuser@example.com"
        assert me["role"] == "learner"
        assert me["full_name"] == "New User"

    def test_register_duplicate_fails(self, api_client: TestClient):
        body = {"email": "dup@example.com", "password": "pass123", "confirm_password": "pass123"}
        api_client.post("/auth/register", json=body)
        response = api_client.post("/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_register_password_mismatch(self, api_client: TestClient):
        response = api_client.post(
            "/auth/register",
            json={"email": "x@example.com", "password": "one", "confirm_password": "two"},
        )
        assert response.status_code == 400

    def test_login_success(self, api_client: TestClient, seeded):
        response = api_client.post("/auth/login", json={"email": LEARNER_EMAIL, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["token_set"] is True
        assert "access_token" in response.cookies

    def test_login_wrong_password_fails(self, api_client: TestClient, seeded):
        response = api_client.post("/auth/login", json={"email": LEARNER_EMAIL, "password": "wrong"})
        assert response.status_code == 401
        body = response.json()
        assert body["data"] is None
        assert body["error"]["code"] == "UNAUTHORIZED"

    def test_me_without_cookie(self, api_client: TestClient):
        response = api_client.get("/auth/me")
        assert response.status_code == 401

    def test_logout_clears_session(self, learner: TestClient):
        assert learner.post("/auth/logout").status_code == 200
        learner.cookies.clear()
        assert learner.get("/api/courses").status_code == 401


@pytest.mark.integration
class TestCourseRoutes:
    def test_list_courses(self, learner: TestClient):
        response = learner.get("/api/courses")
        assert response.status_code == 200
        courses = response.json()["data"]["courses"]
        assert [c["code"] for c in courses] == ["AI101", "ML200"]
        assert courses[0]["totalModules"] == 3
        assert courses[0]["enrollmentId"] is None

    def test_allow_list_filters_courses(self, login):
        client = login(RESTRICTED_EMAIL)
        courses = client.get("/api/courses").json()["data"]["courses"]
        assert [c["code"] for c in courses] == ["ML200"]

    def test_allow_list_blocks_course_load(self, login):
        client = login(RESTRICTED_EMAIL)
        response = client.get("/api/courses/AI101")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_other_roles_are_denied(self, login):
        client = login(INSTRUCTOR_EMAIL)
        response = client.get("/api/courses")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_unknown_course(self, learner: TestClient):
        response = learner.get("/api/courses/NOPE")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_first_load_is_fresh_and_enrolls(self, learner: TestClient):
        data = learner.get("/api/courses/AI101").json()["data"]
        assert data["restored"] is False
        assert data["course"]["enrollmentId"]
        statuses = [m["status"] for m in data["modules"]]
        assert statuses == ["in_progress", "locked", "locked"]
        assert [l["status"] for l in data["modules"][0]["lessons"]] == ["not_started", "not_started"]
        assert data["modules"][0]["quiz"]["status"] == "locked"
        assert data["learnerProgress"]["total_lessons"] == 6
        assert [q["id"] for q in data["qubitsModules"]] == ["qubits-1", "qubits-2", "qubits-3"]

    def test_reload_restores_progress(self, learner: TestClient, enrollment_id):
        finish_module_one(learner, enrollment_id)
        data = learner.get("/api/courses/AI101").json()["data"]
        assert data["restored"] is True
        assert data["modules"][0]["status"] == "completed"
        assert data["modules"][1]["status"] == "not_started"
        assert data["course"]["enrollmentId"] == enrollment_id


@pytest.mark.integration
class TestEnrollmentRoutes:
    def test_list_is_paginated(self, learner: TestClient, enrollment_id):
        learner.get("/api/courses/ML200")
        body = learner.get("/api/enrollments", params={"page": 1, "pageSize": 1}).json()
        assert len(body["data"]) == 1
        assert body["meta"] == {"total": 2, "page": 1, "pageSize": 1, "hasMore": True}

    def test_status_filter(self, learner: TestClient, enrollment_id):
        lesson_event(learner, enrollment_id, "m1-l1", progressPercent=30, lastPosition=60)
        body = learner.get("/api/enrollments", params={"status": "in_progress"}).json()
        assert [e["id"] for e in body["data"]] == [enrollment_id]
        assert body["data"][0]["courseCode"] == "AI101"
        assert body["data"][0]["startedAt"] is not None

    def test_get_by_id(self, learner: TestClient, enrollment_id):
        data = learner.get(f"/api/enrollments/{enrollment_id}").json()["data"]
        assert data["status"] == "not_started"
        assert data["progress"] == 0
        assert len(data["lessonProgress"]) == 6
        assert data["quizAttempts"] == []

    def test_detail_lists_lesson_progress_and_attempts(self, learner: TestClient, enrollment_id):
        lesson_event(learner, enrollment_id, "m1-l1", progressPercent=100, lastPosition=600, watchedDuration=580)
        complete(learner, enrollment_id, "m1-l2")
        submit(learner, enrollment_id, "m1-quiz", 1)
        submit(learner, enrollment_id, "m1-quiz", 4)

        data = learner.get(f"/api/enrollments/{enrollment_id}").json()["data"]
        first = data["lessonProgress"][0]
        assert first["moduleId"] == "m1"
        assert first["lessonId"] == "m1-l1"
        assert first["status"] == "completed"
        assert first["progressPercent"] == 100
        assert first["lastPosition"] == 600
        assert first["watchedDuration"] == 580
        assert data["lessonProgress"][2]["status"] == "not_started"

        attempts = data["quizAttempts"]
        assert [a["attemptNumber"] for a in attempts] == [1, 2]
        assert [a["score"] for a in attempts] == [25, 100]
        assert [a["passed"] for a in attempts] == [False, True]
        assert attempts[1]["totalQuestions"] == 4
        assert attempts[1]["correctAnswers"] == 4
        assert attempts[1]["durationSeconds"] == 120

    def test_unknown_enrollment(self, learner: TestClient):
        assert learner.get("/api/enrollments/nope").status_code == 404

    def test_someone_elses_enrollment(self, login, enrollment_id):
        client = login(RESTRICTED_EMAIL)
        response = client.get(f"/api/enrollments/{enrollment_id}")
        assert response.status_code == 403


@pytest.mark.integration
class TestLessonProgressRoutes:
    def test_tick_updates_lesson_and_enrollment(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m1-l1", progressPercent=50, lastPosition=300)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "in_progress"
        assert data["progress"] == 50
        assert data["lastPosition"] == 300
        assert data["xpAwarded"] == 0
        assert data["enrollment"]["status"] == "in_progress"
        assert data["enrollment"]["progress"] == 8

    def test_completion_awards_xp_once(self, learner: TestClient, enrollment_id):
        first = complete(learner, enrollment_id, "m1-l1")
        again = complete(learner, enrollment_id, "m1-l1")
        assert first["xpAwarded"] == 25
        assert first["saved"] is True
        assert again["xpAwarded"] == 0
        profile = learner.get("/api/gamification").json()["data"]
        assert profile["totalXp"] == 25
        assert profile["totalLessonsCompleted"] == 1
        assert profile["currentStreak"] == 1

    def test_finishing_a_module_unlocks_the_next(self, learner: TestClient, enrollment_id):
        data = finish_module_one(learner, enrollment_id)
        assert data["learnerProgress"]["lessons_completed"] == 2
        assert data["enrollment"]["progress"] == 33
        modules = learner.get("/api/courses/AI101").json()["data"]["modules"]
        assert modules[0]["quiz"]["status"] == "not_started"
        assert [l["status"] for l in modules[1]["lessons"]] == ["not_started", "not_started"]

    def test_completing_locked_lesson_is_forbidden(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m2-l1", status="completed")
        assert response.status_code == 403

    def test_tick_on_locked_lesson_is_ignored(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m2-l1", progressPercent=40)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["ignored"] is True
        assert data["status"] == "locked"

    def test_unknown_lesson(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "zz-l9", progressPercent=40)
        assert response.status_code == 404

    def test_out_of_range_percent_is_rejected(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m1-l1", progressPercent=140)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_watched_duration_adds_to_time_spent(self, learner: TestClient, enrollment_id):
        lesson_event(learner, enrollment_id, "m1-l1", progressPercent=20, watchedDuration=60)
        data = lesson_event(learner, enrollment_id, "m1-l1", progressPercent=50, watchedDuration=150).json()["data"]
        assert data["watchedDuration"] == 150
        assert data["learnerProgress"]["total_time_spent"] == 150

        reloaded = learner.get("/api/courses/AI101").json()["data"]
        assert reloaded["learnerProgress"]["total_time_spent"] == 150

    def test_watched_duration_alone_is_a_valid_event(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m1-l1", watchedDuration=30)
        assert response.status_code == 200
        assert response.json()["data"]["watchedDuration"] == 30

    def test_empty_event_is_rejected(self, learner: TestClient, enrollment_id):
        response = lesson_event(learner, enrollment_id, "m1-l1")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_other_users_enrollment(self, login, enrollment_id):
        client = login(RESTRICTED_EMAIL)
        response = lesson_event(client, enrollment_id, "m1-l1", progressPercent=10)
        assert response.status_code == 403


@pytest.mark.integration
class TestQuizRoutes:
    def test_locked_quiz_is_forbidden(self, learner: TestClient, enrollment_id):
        response = submit(learner, enrollment_id, "m1-quiz", 4)
        assert response.status_code == 403

    def test_pass_scores_and_unlocks(self, learner: TestClient, enrollment_id):
        finish_module_one(learner, enrollment_id)
        response = submit(learner, enrollment_id, "m1-quiz", 3)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 75
        assert data["passed"] is True
        assert data["attemptNumber"] == 1
        assert data["bestScore"] == 75
        assert data["xpAwarded"] == 50
        assert len(data["answers"]) == 4
        assert data["answers"][3]["correctAnswers"] == ["a"]

        modules = learner.get("/api/courses/AI101").json()["data"]["modules"]
        assert modules[0]["quiz"]["status"] == "passed"
        profile = learner.get("/api/gamification").json()["data"]
        assert profile["totalXp"] == 100
        assert profile["currentLevel"] == 2
        assert profile["totalQuizzesPassed"] == 1

    def test_attempt_limit(self, learner: TestClient, enrollment_id):
        finish_module_one(learner, enrollment_id)
        assert submit(learner, enrollment_id, "m1-quiz", 1).json()["data"]["attemptNumber"] == 1
        second = submit(learner, enrollment_id, "m1-quiz", 2).json()["data"]
        assert second["attemptNumber"] == 2
        assert second["bestScore"] == 50
        response = submit(learner, enrollment_id, "m1-quiz", 4)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MAX_ATTEMPTS"

    def test_answers_hidden_unless_configured(self, learner: TestClient, enrollment_id):
        for lesson in ("m1-l1", "m1-l2", "m2-l1", "m2-l2"):
            complete(learner, enrollment_id, lesson)
        data = submit(learner, enrollment_id, "m2-quiz", 4).json()["data"]
        assert data["answers"] is None

    def test_quiz_from_another_course(self, learner: TestClient, enrollment_id):
        response = submit(learner, enrollment_id, "ml200-m1-quiz", 2, total=2)
        assert response.status_code == 404

    def test_unknown_enrollment(self, learner: TestClient, seeded):
        assert submit(learner, "nope", "m1-quiz", 4).status_code == 404


@pytest.mark.integration
class TestPracticeRoutes:
    def test_start_returns_first_n_questions(self, learner: TestClient, enrollment_id):
        response = learner.post(
            "/api/practice/start",
            json={"courseCode": "AI101", "moduleIds": ["qubits-2", "qubits-1"], "questionCounts": {"qubits-2": 1, "qubits-1": 2}},
        )
        assert response.status_code == 200
        ids = [q["id"] for q in response.json()["data"]["questions"]]
        assert ids == ["m2-q1", "m1-q1", "m1-q2"]

    def test_start_with_nothing_selectable(self, learner: TestClient, enrollment_id):
        response = learner.post("/api/practice/start", json={"courseCode": "AI101", "moduleIds": ["qubits-9"]})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NO_ELIGIBLE_QUESTIONS"

    def test_complete_updates_counters_and_xp(self, learner: TestClient, enrollment_id):
        response = learner.post(
            "/api/practice/complete",
            json={
                "courseCode": "AI101",
                "questionIds": ["m1-q1", "m1-q2", "m1-q3", "m1-q4"],
                "results": [
                    {"questionId": "m1-q1", "isCorrect": True},
                    {"questionId": "m1-q2", "isCorrect": True},
                    {"questionId": "m1-q3", "isCorrect": True},
                    {"questionId": "m1-q4", "isCorrect": False},
                ],
                "elapsedSeconds": 90,
            },
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 75
        assert data["xpAwarded"] == 19
        assert data["qubitsModules"][0]["attempted_questions"] == 4
        assert data["qubitsModules"][0]["accuracy"] == 75
        assert data["qubitsDashboard"]["total_quizzes"] == 1
        assert data["qubitsDashboard"]["streak"] == 1

        reloaded = learner.get("/api/courses/AI101").json()["data"]
        assert reloaded["qubitsDashboard"]["total_quizzes"] == 1
        assert reloaded["modules"][0]["quiz"]["status"] == "locked"
        assert learner.get("/api/gamification").json()["data"]["totalXp"] == 19

    def test_complete_with_no_known_questions(self, learner: TestClient, enrollment_id):
        response = learner.post(
            "/api/practice/complete",
            json={"courseCode": "AI101", "questionIds": ["zz-q1"], "results": [], "elapsedSeconds": 5},
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestResetRoute:
    def test_reset_zeroes_progress_but_keeps_xp(self, learner: TestClient, enrollment_id):
        finish_module_one(learner, enrollment_id)
        response = learner.delete("/api/progress/AI101")
        assert response.status_code == 200
        assert response.json()["data"] == {"courseCode": "AI101", "reset": True}

        data = learner.get("/api/courses/AI101").json()["data"]
        assert data["restored"] is False
        assert [m["status"] for m in data["modules"]] == ["in_progress", "locked", "locked"]
        enrollment = learner.get(f"/api/enrollments/{enrollment_id}").json()["data"]
        assert enrollment["status"] == "not_started"
        assert enrollment["progress"] == 0
        assert learner.get("/api/gamification").json()["data"]["totalXp"] == 50

    def test_reset_twice(self, learner: TestClient, enrollment_id):
        assert learner.delete("/api/progress/AI101").status_code == 200
        assert learner.delete("/api/progress/AI101").status_code == 200


@pytest.mark.integration
class TestStoreOutage:
    def test_course_load_reports_unavailable(self, api_client: TestClient, learner: TestClient):
        from api.api import app
        from api.bootstrap import get_progress_sync
        from progression.errors import StoreUnavailable
        from progression.store import ProgressStore
        from progression.sync import ProgressSync

        class DownStore(ProgressStore):
            def load(self, user_id, course_code):
                raise StoreUnavailable("down")

            def save(self, user_id, course_code, snapshot):
                raise StoreUnavailable("down")

            def reset(self, user_id, course_code):
                raise StoreUnavailable("down")

        app.dependency_overrides[get_progress_sync] = lambda: ProgressSync(store=DownStore())
        response = learner.get("/api/courses/AI101")
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"


@pytest.mark.integration
class TestScormRoutes:
    def test_fresh_enrollment_has_no_scorm_data(self, learner: TestClient, enrollment_id):
        response = learner.get("/api/progress/scorm", params={"enrollmentId": enrollment_id})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["lessonLocation"] is None
        assert data["totalTime"] == 0
        assert data["status"] == "not_started"

    def test_update_and_resume(self, learner: TestClient, enrollment_id):
        response = learner.post(
            "/api/progress/scorm",
            json={
                "enrollmentId": enrollment_id,
                "lessonLocation": "slide-7",
                "suspendData": {"visited": [1, 2, 3]},
                "sessionTime": 300,
                "score": 82.5,
                "successStatus": "passed",
                "progressMeasure": 0.456,
            },
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["progress"] == 46
        assert data["status"] == "in_progress"

        learner.post("/api/progress/scorm", json={"enrollmentId": enrollment_id, "sessionTime": 120})
        resumed = learner.get("/api/progress/scorm", params={"enrollmentId": enrollment_id}).json()["data"]
        assert resumed["lessonLocation"] == "slide-7"
        assert resumed["suspendData"] == {"visited": [1, 2, 3]}
        assert resumed["totalTime"] == 420
        assert resumed["score"] == 82.5
        assert resumed["successStatus"] == "passed"

        enrollment = learner.get(f"/api/enrollments/{enrollment_id}").json()["data"]
        assert enrollment["progress"] == 46
        assert enrollment["startedAt"] is not None

    def test_completion_completes_enrollment(self, learner: TestClient, enrollment_id):
        response = learner.post(
            "/api/progress/scorm",
            json={"enrollmentId": enrollment_id, "completionStatus": "completed", "progressMeasure": 1},
        )
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["progress"] == 100
        assert data["completionStatus"] == "completed"
        enrollment = learner.get(f"/api/enrollments/{enrollment_id}").json()["data"]
        assert enrollment["completedAt"] is not None

    def test_invalid_values_are_rejected(self, learner: TestClient, enrollment_id):
        response = learner.post("/api/progress/scorm", json={"enrollmentId": enrollment_id, "progressMeasure": 1.5})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        response = learner.post("/api/progress/scorm", json={"enrollmentId": enrollment_id, "completionStatus": "done"})
        assert response.status_code == 400

    def test_enrollment_id_is_required(self, learner: TestClient):
        response = learner.get("/api/progress/scorm")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_other_users_enrollment(self, login, enrollment_id):
        client = login(RESTRICTED_EMAIL)
        assert client.get("/api/progress/scorm", params={"enrollmentId": enrollment_id}).status_code == 403
        response = client.post("/api/progress/scorm", json={"enrollmentId": enrollment_id, "sessionTime": 10})
        assert response.status_code == 403

    def test_unknown_enrollment(self, learner: TestClient, seeded):
        assert learner.get("/api/progress/scorm", params={"enrollmentId": "nope"}).status_code == 404
