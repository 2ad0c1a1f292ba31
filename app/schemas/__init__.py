"""API 请求/响应 Pydantic 模型。按模块组织，路由从本包或子模块导入。"""
from app.schemas.attempts import (
    AttemptListItem,
    AttemptListResponse,
    AttemptReviewResponse,
    ReviewItem,
    ReviewOption,
)
from app.schemas.auth import (
    AuthResponse,
    AuthUser,
    LoginRequest,
    RegisterRequest,
)
from app.schemas.exams import (
    ExamInfoResponse,
    ScoreSummary,
    SelectAnswerRequest,
    SessionQuestionItem,
    SessionStateResponse,
    SubmitResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AttemptListItem",
    "AttemptListResponse",
    "AttemptReviewResponse",
    "ReviewItem",
    "ReviewOption",
    "AuthResponse",
    "AuthUser",
    "LoginRequest",
    "RegisterRequest",
    "ExamInfoResponse",
    "ScoreSummary",
    "SelectAnswerRequest",
    "SessionQuestionItem",
    "SessionStateResponse",
    "SubmitResponse",
    "HealthResponse",
]
