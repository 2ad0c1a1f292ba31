"""把考试流程的业务异常转换为 HTTPException，detail 使用面向学生的提示语。"""
import logging

from fastapi import HTTPException

from app.core.exceptions import (
    AttemptWriteError,
    AuthMissingError,
    ExamLoadError,
    ExamServiceError,
    HistoryLoadError,
    ReviewLoadError,
    SessionNotActiveError,
    SessionStateError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ExamServiceError], int] = {
    AuthMissingError: 401,
    ExamLoadError: 409,
    SessionNotActiveError: 409,
    SessionStateError: 409,
    AttemptWriteError: 503,
    ReviewLoadError: 503,
    HistoryLoadError: 503,
}


def to_http_exception(error: ExamServiceError) -> HTTPException:
    status_code = 500
    for cls in type(error).__mro__:
        if cls in _STATUS_BY_ERROR:
            status_code = _STATUS_BY_ERROR[cls]
            break
    logger.info("[api] %s -> %d: %s", type(error).__name__, status_code, error)
    return HTTPException(status_code=status_code, detail=error.user_message)
