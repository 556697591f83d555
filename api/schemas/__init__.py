"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import Envelope, QuizSubmitRequest
    from api.schemas.quiz_schemas import QuizSubmitResponse
"""

from api.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from api.schemas.user_schemas import User, MeResponse
from api.schemas.envelope_schemas import Envelope, ErrorBody, PageMeta, WireModel
from api.schemas.course_schemas import CourseSummary, CourseListResponse, CourseLoadResponse
from api.schemas.enrollment_schemas import (
    EnrollmentDetailResponse,
    EnrollmentResponse,
    LessonProgressEntry,
    QuizAttemptEntry,
)
from api.schemas.scorm_schemas import ScormDataResponse, ScormUpdateRequest
from api.schemas.progress_schemas import (
    LessonProgressRequest,
    LessonProgressResponse,
    EnrollmentProgress,
    ResetResponse,
)
from api.schemas.quiz_schemas import (
    SubmittedAnswer,
    QuizSubmitRequest,
    AnswerResult,
    QuizSubmitResponse,
)
from api.schemas.practice_schemas import (
    PracticeStartRequest,
    PracticeQuestion,
    PracticeStartResponse,
    PracticeResultItem,
    PracticeCompleteRequest,
    PracticeCompleteResponse,
)
from api.schemas.gamification_schemas import GamificationResponse

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    # user
    "User",
    "MeResponse",
    # envelope
    "Envelope",
    "ErrorBody",
    "PageMeta",
    "WireModel",
    # course
    "CourseSummary",
    "CourseListResponse",
    "CourseLoadResponse",
    # enrollment
    "EnrollmentResponse",
    "EnrollmentDetailResponse",
    "LessonProgressEntry",
    "QuizAttemptEntry",
    # scorm
    "ScormUpdateRequest",
    "ScormDataResponse",
    # progress
    "LessonProgressRequest",
    "LessonProgressResponse",
    "EnrollmentProgress",
    "ResetResponse",
    # quiz
    "SubmittedAnswer",
    "QuizSubmitRequest",
    "AnswerResult",
    "QuizSubmitResponse",
    # practice
    "PracticeStartRequest",
    "PracticeQuestion",
    "PracticeStartResponse",
    "PracticeResultItem",
    "PracticeCompleteRequest",
    "PracticeCompleteResponse",
    # gamification
    "GamificationResponse",
]
