"""作答落库：先写作答记录（exam_attempts），再用其 ID 批量写逐题作答（attempt_answers）。

存储层不提供跨表事务，两步是尽力而为的顺序写：
- 第一步失败：什么都不写，抛 AttemptWriteError，会话保持进行中，允许重新提交；
- 第一步成功、第二步失败：作答记录已存在，逐题记录缺失。只记录日志并返回 answers_saved=False，
  不回滚第一步。
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AttemptWriteError, AuthMissingError
from app.repositories.attempt_repository import create_attempt, create_attempt_answers
from app.services.grading_service import GradeResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedAttempt:
    attempt_id: str
    submitted_at: datetime
    answers_saved: bool


async def record_attempt(
    db: AsyncSession,
    *,
    exam_id: str,
    student_id: str | None,
    grade: GradeResult,
) -> RecordedAttempt:
    if not student_id:
        raise AuthMissingError("no signed-in student for submission")

    submitted_at = datetime.now(timezone.utc)
    try:
        attempt = await create_attempt(
            db,
            exam_id=exam_id,
            student_id=student_id,
            score=grade.percent_score,
            submitted_at=submitted_at,
        )
    except SQLAlchemyError as e:
        logger.exception("[record] 作答记录写入失败 exam_id=%s student_id=%s", exam_id, student_id)
        await db.rollback()
        raise AttemptWriteError(str(e)) from e

    attempt_id = attempt.id
    if not grade.items:
        logger.info("[record] attempt_id=%s 无题目，跳过逐题记录", attempt_id)
        return RecordedAttempt(attempt_id=attempt_id, submitted_at=submitted_at, answers_saved=True)

    answers = [
        {
            "question_id": item.question_id,
            "selected_option": item.selected_option,
            "is_correct": item.is_correct,
        }
        for item in grade.items
    ]
    try:
        await create_attempt_answers(db, attempt_id, answers)
    except SQLAlchemyError as e:
        logger.error(
            "[record] 逐题记录写入失败，作答记录已存在但答案不完整 attempt_id=%s: %s", attempt_id, e
        )
        await db.rollback()
        return RecordedAttempt(attempt_id=attempt_id, submitted_at=submitted_at, answers_saved=False)

    logger.info(
        "[record] attempt_id=%s exam_id=%s score=%d 逐题记录=%d",
        attempt_id,
        exam_id,
        grade.percent_score,
        len(answers),
    )
    return RecordedAttempt(attempt_id=attempt_id, submitted_at=submitted_at, answers_saved=True)
