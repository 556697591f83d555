from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from api.models.models import GamificationProfile as DbProfile
from progression.gamification import (
    GamificationProfile,
    award_xp,
    record_activity,
    record_lesson_completed,
    record_quiz_passed,
)

_FIELDS = (
    "total_xp",
    "current_level",
    "current_xp",
    "xp_to_next_level",
    "current_streak",
    "longest_streak",
    "last_activity_date",
    "total_lessons_completed",
    "total_quizzes_passed",
)


class GamificationService:
    """Per-user XP profile. Callers commit the DB session."""

    def __init__(self, db: DBSession):
        self.db = db

    def _row(self, user_id: int) -> DbProfile:
        row = self.db.query(DbProfile).filter(DbProfile.user_id == user_id).first()
        if row is None:
            row = DbProfile(user_id=user_id)
            self.db.add(row)
            self.db.flush()
        return row

    def get(self, user_id: int) -> GamificationProfile:
        row = self.db.query(DbProfile).filter(DbProfile.user_id == user_id).first()
        if row is None:
            return GamificationProfile()
        return GamificationProfile(**{f: getattr(row, f) for f in _FIELDS})

    def _store(self, user_id: int, profile: GamificationProfile) -> GamificationProfile:
        row = self._row(user_id)
        for f in _FIELDS:
            setattr(row, f, getattr(profile, f))
        row.updated_at = datetime.utcnow()
        return profile

    def lesson_completed(self, user_id: int, xp: int, today: Optional[date] = None) -> GamificationProfile:
        profile = record_lesson_completed(self.get(user_id), xp, today or date.today())
        return self._store(user_id, profile)

    def quiz_passed(self, user_id: int, xp: int, today: Optional[date] = None) -> GamificationProfile:
        profile = record_quiz_passed(self.get(user_id), xp, today or date.today())
        return self._store(user_id, profile)

    def practiced(self, user_id: int, xp: int, today: Optional[date] = None) -> GamificationProfile:
        profile = award_xp(record_activity(self.get(user_id), today or date.today()), xp)
        return self._store(user_id, profile)
