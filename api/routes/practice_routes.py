"""
Qubits practice endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.bootstrap import get_progress_sync
from api.config import get_db, settings
from api.schemas.envelope_schemas import Envelope
from api.schemas.practice_schemas import (
    PracticeCompleteRequest,
    PracticeCompleteResponse,
    PracticeStartRequest,
    PracticeStartResponse,
)
from api.schemas.user_schemas import User
from api.services.practice_service import PracticeService
from api.utils.auth import get_portal_user
from api.utils.common import ok
from progression.sync import ProgressSync

practice_routes = APIRouter()


@practice_routes.post("/practice/start", response_model=Envelope[PracticeStartResponse])
async def start_practice(
    req: PracticeStartRequest,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[PracticeStartResponse]:
    assert current_user is not None
    questions = PracticeService(db, sync, settings.unlock_mode).start(current_user, req)
    return ok(PracticeStartResponse(questions=questions))


@practice_routes.post("/practice/complete", response_model=Envelope[PracticeCompleteResponse])
async def complete_practice(
    req: PracticeCompleteRequest,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
    sync: ProgressSync = Depends(get_progress_sync),
) -> Envelope[PracticeCompleteResponse]:
    assert current_user is not None
    return ok(PracticeService(db, sync, settings.unlock_mode).complete(current_user, req))
