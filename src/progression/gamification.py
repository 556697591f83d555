"""XP, levels and the daily activity streak for a learner."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel

FIRST_LEVEL_XP = 100
LEVEL_XP_GROWTH = 1.5


class GamificationProfile(BaseModel):
    total_xp: int = 0
    current_level: int = 1
    current_xp: int = 0  # XP carried towards the next level
    xp_to_next_level: int = FIRST_LEVEL_XP
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: Optional[date] = None
    total_lessons_completed: int = 0
    total_quizzes_passed: int = 0


def award_xp(profile: GamificationProfile, amount: int) -> GamificationProfile:
    """Add XP and level up as many times as the carried XP allows."""
    out = profile.model_copy()
    if amount <= 0:
        return out
    out.total_xp += amount
    out.current_xp += amount
    while out.current_xp >= out.xp_to_next_level:
        out.current_xp -= out.xp_to_next_level
        out.current_level += 1
        out.xp_to_next_level = int(math.floor(out.xp_to_next_level * LEVEL_XP_GROWTH))
    return out


def record_activity(profile: GamificationProfile, today: date) -> GamificationProfile:
    out = profile.model_copy()
    last = out.last_activity_date
    if last == today:
        return out
    if last is not None and last == today - timedelta(days=1):
        out.current_streak += 1
    else:
        out.current_streak = 1
    out.longest_streak = max(out.longest_streak, out.current_streak)
    out.last_activity_date = today
    return out


def record_lesson_completed(profile: GamificationProfile, xp: int, today: date) -> GamificationProfile:
    out = award_xp(record_activity(profile, today), xp)
    out.total_lessons_completed += 1
    return out


def record_quiz_passed(profile: GamificationProfile, xp: int, today: date) -> GamificationProfile:
    out = award_xp(record_activity(profile, today), xp)
    out.total_quizzes_passed += 1
    return out
