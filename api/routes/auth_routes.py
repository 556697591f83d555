from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from api.bootstrap import get_session_channel
from api.config import get_db
from api.schemas.auth_schemas import LoginRequest, LoginResponse, LogoutResponse, RegisterRequest, RegisterResponse
from api.schemas.user_schemas import MeResponse, User
from api.utils.auth import (
    authenticate_user,
    clear_auth_cookie,
    create_user,
    get_current_user,
    get_user_by_email,
    set_auth_cookie,
)
from api.utils.session_events import SessionEstablished, SessionEventChannel

auth_routes = APIRouter()


def _established(user) -> SessionEstablished:
    codes = user.allowed_course_codes
    return SessionEstablished(
        user_id=int(user.id),
        email=user.email,
        role=user.role or "learner",
        allowed_course_codes=tuple(codes) if codes is not None else None,
    )


@auth_routes.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    channel: SessionEventChannel = Depends(get_session_channel),
) -> LoginResponse:
    """Authenticate user and set HTTP-only cookie with token."""
    user = authenticate_user(request.email, request.password, db)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    set_auth_cookie(response, user)
    channel.publish(_established(user))
    return LoginResponse(message="Login successful", token_set=True)


@auth_routes.post("/register", response_model=RegisterResponse)
def register(
    request: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    channel: SessionEventChannel = Depends(get_session_channel),
) -> RegisterResponse:
    """Register a new learner."""
    if get_user_by_email(request.email, db):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    if request.password != request.confirm_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match"
        )
    user = create_user(request.email, request.password, db, full_name=request.full_name)
    set_auth_cookie(response, user)
    channel.publish(_established(user))
    return RegisterResponse(message="Registration successful")


@auth_routes.post("/logout", response_model=LogoutResponse)
def logout(response: Response) -> LogoutResponse:
    """Clear the authentication cookie."""
    clear_auth_cookie(response)
    return LogoutResponse(message="Logout successful")


@auth_routes.get("/me", response_model=MeResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role,
        allowed_course_codes=current_user.allowed_course_codes,
    )
