from typing import Optional

from api.schemas.envelope_schemas import WireModel


class GamificationResponse(WireModel):
    total_xp: int
    current_level: int
    current_xp: int
    xp_to_next_level: int
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[str] = None
    total_lessons_completed: int
    total_quizzes_passed: int
