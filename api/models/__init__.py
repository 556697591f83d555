"""
API data models. Single import surface for DB entities.

DB entities (api.models.models):
- User, Course, Module, Lesson, Quiz, Question, Enrollment, QuizAttempt,
  ProgressSnapshot, GamificationProfile
"""

from api.models.models import (
    User,
    Course,
    Module,
    Lesson,
    Quiz,
    Question,
    Enrollment,
    QuizAttempt,
    ProgressSnapshot,
    GamificationProfile,
)

__all__ = [
    "User",
    "Course",
    "Module",
    "Lesson",
    "Quiz",
    "Question",
    "Enrollment",
    "QuizAttempt",
    "ProgressSnapshot",
    "GamificationProfile",
]
