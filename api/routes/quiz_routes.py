"""
Quiz submission endpoint.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.bootstrap import get_progress_sync
from api.config import get_db, settings
from api.schemas.envelope_schemas import Envelope
from api.schemas.quiz_schemas import QuizSubmitRequest, QuizSubmitResponse
from api.schemas.user_schemas import User
from api.services.quiz_service import QuizService
from api.utils.auth import get_portal_user
from api.utils.common import ok
from progression.sync import ProgressSync

quiz_routes = APIRouter()


@quiz_routes.post("/quiz/submit", response_model=Envelope[QuizSubmitResponse])
async def submit_quiz(
    req: QuizSubmitRequest,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[QuizSubmitResponse]:
    assert current_user is not None
    return ok(QuizService(db, sync, settings.unlock_mode).submit(current_user, req))
