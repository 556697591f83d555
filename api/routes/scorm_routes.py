"""
SCORM runtime endpoints for packaged course players.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.envelope_schemas import Envelope
from api.schemas.scorm_schemas import ScormDataResponse, ScormUpdateRequest
from api.schemas.user_schemas import User
from api.services.scorm_service import ScormService
from api.utils.auth import get_portal_user
from api.utils.common import ok

scorm_routes = APIRouter()


@scorm_routes.post("/progress/scorm", response_model=Envelope[ScormDataResponse])
async def update_scorm(
    req: ScormUpdateRequest,
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
) -> Envelope[ScormDataResponse]:
    assert current_user is not None
    return ok(ScormService(db).update(current_user, req))


@scorm_routes.get("/progress/scorm", response_model=Envelope[ScormDataResponse])
async def get_scorm(
    enrollment_id: str = Query(..., alias="enrollmentId"),
    current_user: User = Depends(get_portal_user),
    db: Session = Depends(get_db),
) -> Envelope[ScormDataResponse]:
    """Saved SCORM data for resuming a packaged course."""
    assert current_user is not None
    return ok(ScormService(db).get(current_user, enrollment_id))
