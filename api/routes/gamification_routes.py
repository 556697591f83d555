from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.envelope_schemas import Envelope
from api.schemas.gamification_schemas import GamificationResponse
from api.schemas.user_schemas import User
from api.services.gamification_service import GamificationService
from api.utils.auth import get_portal_user
from api.utils.common import iso_date, ok

gamification_routes = APIRouter()


@gamification_routes.get("/gamification", response_model=Envelope[GamificationResponse])
async def get_gamification(
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
) -> Envelope[GamificationResponse]:
    assert current_user is not None
    p = GamificationService(db).get(current_user.id)
    return ok(
        GamificationResponse(
            total_xp=p.total_xp,
            current_level=p.current_level,
            current_xp=p.current_xp,
            xp_to_next_level=p.xp_to_next_level,
            current_streak=p.current_streak,
            longest_streak=p.longest_streak,
            last_activity_date=iso_date(p.last_activity_date),
            total_lessons_completed=p.total_lessons_completed,
            total_quizzes_passed=p.total_quizzes_passed,
        )
    )
