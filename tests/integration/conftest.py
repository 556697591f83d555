"""
Integration test fixtures. Overrides get_db and the progress writer for API tests
with an in-memory DB, and seeds a small course catalogue.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

LEARNER_EMAIL = "learner@example.com"
RESTRICTED_EMAIL = "restricted@example.com"
INSTRUCTOR_EMAIL = "instructor@example.com"
PASSWORD = "testpass123"


@pytest.fixture
def testing_session_local():
    """Session factory bound to a fresh in-memory database with every table created."""
    import api.models  # noqa: F401
    from api.config import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def override_get_db(testing_session_local):
    def _get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def db(testing_session_local):
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def progress_sync(testing_session_local):
    from api.models import ProgressSnapshot
    from infra.progress.sql_store import SqlProgressStore
    from progression.sync import ProgressSync

    return ProgressSync(store=SqlProgressStore(session_factory=testing_session_local, model=ProgressSnapshot), debounce_seconds=2.0)


@pytest.fixture
def api_client(override_get_db, progress_sync):
    """FastAPI TestClient with in-memory DB and progress writer overrides."""
    from fastapi.testclient import TestClient
    from api.api import app
    from api.bootstrap import get_progress_sync
    from api.config import get_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_progress_sync] = lambda: progress_sync
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _seed_course(db, code: str, title: str, modules: int, lessons: int, questions: int, **first_quiz_kwargs):
    from api.models.models import Course, Lesson, Module, Question, Quiz

    course = Course(id=f"course-{code.lower()}", code=code, title=title, description=f"{title} course")
    db.add(course)
    for n in range(1, modules + 1):
        prefix = f"{code.lower()}-m{n}" if code != "AI101" else f"m{n}"
        module = Module(id=prefix, course_id=course.id, number=n, title=f"Module {n}")
        db.add(module)
        for i in range(1, lessons + 1):
            db.add(Lesson(id=f"{prefix}-l{i}", module_id=module.id, order_index=i, title=f"Lesson {i}", duration_seconds=600))
        quiz_kwargs = first_quiz_kwargs if n == 1 else {}
        quiz = Quiz(id=f"{prefix}-quiz", module_id=module.id, title=f"Module {n} Quiz", **quiz_kwargs)
        db.add(quiz)
        for i in range(1, questions + 1):
            db.add(
                Question(
                    id=f"{prefix}-q{i}",
                    quiz_id=quiz.id,
                    question_number=i,
                    question_text=f"Question {i}",
                    options=[{"id": o, "text": o.upper()} for o in ("a", "b", "c", "d")],
                    correct_answers=["a"],
                )
            )
    db.commit()
    return course


@pytest.fixture
def seeded(db):
    """
    AI101: 3 modules x 2 lessons x 4 questions; the module 1 quiz allows two
    attempts and reveals correct answers. ML200: 1 module x 1 lesson x 2 questions.
    Users: an unrestricted learner, a learner limited to ML200 and an instructor.
    """
    from api.models.models import User
    from api.utils.jwt import get_password_hash

    _seed_course(db, "AI101", "Applied AI", 3, 2, 4, max_attempts=2, show_correct_answers=True)
    _seed_course(db, "ML200", "Machine Learning", 1, 1, 2)
    hashed = get_password_hash(PASSWORD)
    db.add_all(
        [
            User(email=LEARNER_EMAIL, hashed_password=hashed, full_name="Lea Learner", role="learner"),
            User(email=RESTRICTED_EMAIL, hashed_password=hashed, role="learner", allowed_course_codes=["ML200"]),
            User(email=INSTRUCTOR_EMAIL, hashed_password=hashed, role="instructor"),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def login(api_client, seeded):
    """login(email=LEARNER_EMAIL): sets the auth cookie on the shared client."""

    def _login(email: str = LEARNER_EMAIL, password: str = PASSWORD):
        response = api_client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return api_client

    return _login


@pytest.fixture
def learner(login):
    """Client logged in as the unrestricted learner."""
    return login()


@pytest.fixture
def enrollment_id(learner):
    """Loads AI101 once so the learner is enrolled; returns the enrollment id."""
    response = learner.get("/api/courses/AI101")
    assert response.status_code == 200, response.text
    return response.json()["data"]["course"]["enrollmentId"]
