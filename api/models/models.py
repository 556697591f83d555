from api.config import Base
from sqlalchemy import Column, Integer, Float, String, JSON, Date, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="learner")  # learner|team_lead|manager|company_admin|...
    allowed_course_codes = Column(JSON, nullable=True)  # None = unrestricted
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Course(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True, index=True)  # uuid
    code = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_published = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    modules = relationship(
        "Module",
        backref="course",
        cascade="all, delete-orphan",
        order_by="Module.number",
    )


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    number = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    lessons = relationship(
        "Lesson",
        backref="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order_index",
    )
    quiz = relationship("Quiz", backref="module", cascade="all, delete-orphan", uselist=False)


class Lesson(Base):
    __tablename__ = "lessons"
    id = Column(String, primary_key=True, index=True)  # uuid
    module_id = Column(String, ForeignKey("modules.id"), index=True, nullable=False)
    order_index = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    content_type = Column(String, nullable=False, default="video")  # video|article
    content_ref = Column(String, nullable=True)
    duration_seconds = Column(Integer, nullable=True)


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(String, primary_key=True, index=True)  # uuid
    module_id = Column(String, ForeignKey("modules.id"), unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    passing_score = Column(Integer, default=70, nullable=False)
    max_attempts = Column(Integer, nullable=True)
    show_correct_answers = Column(Boolean, default=False, nullable=False)

    questions = relationship(
        "Question",
        backref="quiz",
        cascade="all, delete-orphan",
        order_by="Question.question_number",
    )


class Question(Base):
    __tablename__ = "questions"
    id = Column(String, primary_key=True, index=True)  # "<module_id>-<suffix>"
    quiz_id = Column(String, ForeignKey("quizzes.id"), index=True, nullable=False)
    question_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="single_choice")
    options = Column(JSON, nullable=False)  # list[{id, text}]
    correct_answers = Column(JSON, nullable=False)  # list[option id]
    points = Column(Integer, default=1, nullable=False)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)
    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default="not_started")  # not_started|in_progress|completed
    progress = Column(Integer, default=0, nullable=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    last_accessed_at = Column(DateTime, nullable=True)
    # SCORM runtime data for packaged courses
    scorm_lesson_location = Column(String, nullable=True)
    scorm_suspend_data = Column(JSON, nullable=True)
    scorm_total_time = Column(Integer, default=0, nullable=False)  # seconds
    scorm_score = Column(Float, nullable=True)
    scorm_completion_status = Column(String, nullable=True)  # incomplete|completed
    scorm_success_status = Column(String, nullable=True)  # unknown|passed|failed

    user = relationship("User", backref="enrollments", foreign_keys=[user_id])
    course = relationship("Course", foreign_keys=[course_id])
    attempts = relationship("QuizAttempt", backref="enrollment", cascade="all, delete-orphan")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(String, primary_key=True, index=True)  # uuid
    enrollment_id = Column(String, ForeignKey("enrollments.id"), index=True, nullable=False)
    quiz_id = Column(String, ForeignKey("quizzes.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    attempt_number = Column(Integer, nullable=False)
    score = Column(Integer, nullable=False)
    passed = Column(Boolean, default=False, nullable=False)
    total_questions = Column(Integer, default=0, nullable=False)
    correct_answers = Column(Integer, default=0, nullable=False)
    answers = Column(JSON, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class ProgressSnapshot(Base):
    __tablename__ = "progress_snapshots"
    __table_args__ = (UniqueConstraint("user_id", "course_code", name="uq_snapshot_user_course"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    course_code = Column(String, index=True, nullable=False)
    payload = Column(JSON, nullable=False)
    saved_at = Column(DateTime, nullable=False)


class GamificationProfile(Base):
    __tablename__ = "gamification_profiles"
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    total_xp = Column(Integer, default=0, nullable=False)
    current_level = Column(Integer, default=1, nullable=False)
    current_xp = Column(Integer, default=0, nullable=False)
    xp_to_next_level = Column(Integer, default=100, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    last_activity_date = Column(Date, nullable=True)
    total_lessons_completed = Column(Integer, default=0, nullable=False)
    total_quizzes_passed = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="gamification_profile", foreign_keys=[user_id], uselist=False)
