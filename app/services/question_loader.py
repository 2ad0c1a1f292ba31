"""加载考试与题目，并拍成不可变快照供考试会话使用（开考后题目不再变化）。"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.exam_repository import get_exam_by_id, get_questions_by_exam_id
from app.services.exam_timer import compute_duration_seconds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionSnapshot:
    id: str
    question_text: str
    options: dict[str, str] = field(default_factory=dict)
    correct_answer: str | None = None
    solution: str | None = None


@dataclass(frozen=True)
class ExamSnapshot:
    id: str
    title: str
    description: str | None = None
    duration: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def duration_seconds(self) -> int:
        return compute_duration_seconds(self.duration, self.start_time, self.end_time)


async def load_exam(db: AsyncSession, exam_id: str) -> ExamSnapshot | None:
    """考试不存在或查询失败都返回 None，失败时记录日志。"""
    try:
        exam = await get_exam_by_id(db, exam_id)
    except SQLAlchemyError as e:
        logger.error("[loader] 查询考试失败 exam_id=%s: %s", exam_id, e)
        await db.rollback()
        return None
    if exam is None:
        return None
    return ExamSnapshot(
        id=exam.id,
        title=exam.title,
        description=exam.description,
        duration=exam.duration,
        start_time=exam.start_time,
        end_time=exam.end_time,
    )


async def load_questions(db: AsyncSession, exam_id: str) -> list[QuestionSnapshot]:
    """读取考试下全部题目。查询失败返回空列表并记录日志，由调用方展示“无法加载”。"""
    try:
        rows = await get_questions_by_exam_id(db, exam_id)
    except SQLAlchemyError as e:
        logger.error("[loader] 查询题目失败 exam_id=%s: %s", exam_id, e)
        await db.rollback()
        return []
    logger.info("[loader] exam_id=%s 题目数=%d", exam_id, len(rows))
    return [
        QuestionSnapshot(
            id=q.id,
            question_text=q.question_text,
            options=q.options,
            correct_answer=q.correct_answer,
            solution=q.solution,
        )
        for q in rows
    ]
