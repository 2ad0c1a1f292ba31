"""作答记录（ExamAttempt）与逐题作答（AttemptAnswer）数据访问层。两张表只插入不更新。"""
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attempt import ExamAttempt
from app.models.attempt_answer import AttemptAnswer
from app.models.exam import Exam
from app.models.question import ExamQuestion


async def create_attempt(
    db: AsyncSession,
    *,
    exam_id: str,
    student_id: str,
    score: int,
    submitted_at: datetime,
) -> ExamAttempt:
    """插入一条作答记录并 commit，返回带生成 ID 的记录。"""
    attempt = ExamAttempt(
        id=str(uuid.uuid4()),
        exam_id=exam_id,
        student_id=student_id,
        score=score,
        submitted_at=submitted_at,
    )
    db.add(attempt)
    await db.commit()
    return attempt


async def create_attempt_answers(
    db: AsyncSession,
    attempt_id: str,
    answers: list[dict],
) -> list[AttemptAnswer]:
    """
    批量插入逐题作答，一次 commit。
    answers: [{"question_id", "selected_option", "is_correct"}, ...]
    """
    rows = [
        AttemptAnswer(
            id=str(uuid.uuid4()),
            attempt_id=attempt_id,
            question_id=a["question_id"],
            selected_option=a.get("selected_option"),
            is_correct=bool(a.get("is_correct")),
        )
        for a in answers
    ]
    db.add_all(rows)
    await db.commit()
    return rows


async def get_attempt_with_exam(
    db: AsyncSession,
    attempt_id: str,
) -> tuple[ExamAttempt, Exam | None] | None:
    """按 ID 查询作答记录及所属考试（考试被删时为 None）。不存在返回 None。"""
    result = await db.execute(
        select(ExamAttempt, Exam)
        .outerjoin(Exam, Exam.id == ExamAttempt.exam_id)
        .where(ExamAttempt.id == attempt_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def get_answers_with_questions(
    db: AsyncSession,
    attempt_id: str,
) -> list[tuple[AttemptAnswer, ExamQuestion | None]]:
    """某次作答的逐题记录，连同题目一起返回；题目已被删除时题目为 None。"""
    result = await db.execute(
        select(AttemptAnswer, ExamQuestion)
        .outerjoin(ExamQuestion, ExamQuestion.id == AttemptAnswer.question_id)
        .where(AttemptAnswer.attempt_id == attempt_id)
        .order_by(ExamQuestion.created_at.asc(), AttemptAnswer.question_id.asc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def list_attempts_by_student(
    db: AsyncSession,
    student_id: str,
) -> list[tuple[ExamAttempt, str | None]]:
    """某学生的全部作答记录（按提交时间倒序），附带考试标题。"""
    result = await db.execute(
        select(ExamAttempt, Exam.title)
        .outerjoin(Exam, Exam.id == ExamAttempt.exam_id)
        .where(ExamAttempt.student_id == student_id)
        .order_by(ExamAttempt.submitted_at.desc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def count_attempts(db: AsyncSession, exam_id: str, student_id: str) -> int:
    """某学生在某考试下的作答次数。"""
    result = await db.execute(
        select(func.count())
        .select_from(ExamAttempt)
        .where(ExamAttempt.exam_id == exam_id, ExamAttempt.student_id == student_id)
    )
    return result.scalar_one() or 0
