"""作答历史与作答回顾。"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.errors import to_http_exception
from app.core.db import get_db
from app.core.exceptions import ExamServiceError, HistoryLoadError
from app.models.user import User
from app.repositories.attempt_repository import list_attempts_by_student
from app.schemas.attempts import AttemptListItem, AttemptListResponse, AttemptReviewResponse
from app.services.review_service import load_attempt_review

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/attempts", response_model=AttemptListResponse)
async def list_my_attempts(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """当前学生的作答历史，按提交时间倒序。"""
    try:
        rows = await list_attempts_by_student(db, user.id)
    except SQLAlchemyError as e:
        logger.error("[history] 读取作答历史失败 student_id=%s: %s", user.id, e)
        raise to_http_exception(HistoryLoadError(str(e)))
    items = [
        AttemptListItem(
            attemptId=attempt.id,
            examId=attempt.exam_id,
            examTitle=title,
            score=attempt.score,
            submittedAt=attempt.submitted_at.isoformat() if attempt.submitted_at else "",
        )
        for attempt, title in rows
    ]
    return AttemptListResponse(items=items, total=len(items))


@router.get("/attempts/{attempt_id}/review", response_model=AttemptReviewResponse)
async def get_attempt_review(
    attempt_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """只读回顾：每题的选项、正确答案、学生所选与解析。"""
    try:
        loaded = await load_attempt_review(db, attempt_id)
    except ExamServiceError as e:
        raise to_http_exception(e)
    if loaded is None:
        raise HTTPException(status_code=404, detail="attempt not found")
    attempt, review = loaded
    if attempt.student_id != user.id:
        raise HTTPException(status_code=404, detail="attempt not found")
    return review
