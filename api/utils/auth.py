from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Cookie, Response, status, Depends
from sqlalchemy.orm import Session

from api.config import get_db, settings
from api.models.models import User as DbUser
from api.schemas.auth_schemas import AuthTokenPayload
from api.schemas.user_schemas import User
from api.utils.jwt import verify_token, get_password_hash, create_access_token, verify_password
from api.utils.logger import configure_logging, set_learner_context

logger = configure_logging()

ALLOWED_ROLES = frozenset({"learner", "team_lead", "manager", "company_admin"})


def to_identity(user: DbUser) -> User:
    return User(
        id=int(user.id),
        email=user.email,
        full_name=user.full_name,
        role=user.role or "learner",
        allowed_course_codes=user.allowed_course_codes,
        hashed_password=user.hashed_password,
    )


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )

    payload = verify_token(access_token)
    user = get_user_by_email(payload.sub, db)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    set_learner_context(user_id=user.id)
    return to_identity(user)


def get_portal_user(current_user: User = Depends(get_current_user)) -> User:
    """Identity for portal routes: roles outside the learner portal get 403."""
    if current_user.role not in ALLOWED_ROLES:
        logger.warning("Role %s denied portal access user=%s", current_user.role, current_user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role not allowed on the learner portal")
    return current_user


def course_allowed(user: User, course_code: str) -> bool:
    """Allow-list check; no list means unrestricted."""
    if user.allowed_course_codes is None:
        return True
    return course_code in user.allowed_course_codes


def set_auth_cookie(response: Response, user: DbUser) -> None:
    minutes = settings.access_token_expire_minutes
    token = create_access_token(
        AuthTokenPayload(sub=user.email, role=user.role, exp=datetime.now(timezone.utc) + timedelta(minutes=minutes))
    )
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=minutes * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=False,
        samesite="lax"
    )


def get_user_by_email(email: str, db: Session) -> DbUser | None:
    return db.query(DbUser).filter(DbUser.email == email).first()


def create_user(email: str, password: str, db: Session, *, full_name: Optional[str] = None, role: str = "learner") -> DbUser:
    logger.info("Creating user: %s", email)
    user = DbUser(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(email: str, password: str, db: Session) -> DbUser | None:
    user = get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
