"""考试（Exam）与考试题目（ExamQuestion）数据访问层。"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.exam import Exam
from app.models.question import ExamQuestion


async def get_exam_by_id(db: AsyncSession, exam_id: str) -> Exam | None:
    """按 ID 查询考试，不存在返回 None。"""
    result = await db.execute(select(Exam).where(Exam.id == exam_id))
    return result.scalars().first()


async def get_questions_by_exam_id(db: AsyncSession, exam_id: str) -> list[ExamQuestion]:
    """按考试 ID 查询全部题目。按 created_at、id 排序，保证多次读取顺序一致。"""
    result = await db.execute(
        select(ExamQuestion)
        .where(ExamQuestion.exam_id == exam_id)
        .order_by(ExamQuestion.created_at.asc(), ExamQuestion.id.asc())
    )
    return list(result.scalars().all())


async def get_question_count_by_exam_id(db: AsyncSession, exam_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(ExamQuestion).where(ExamQuestion.exam_id == exam_id)
    )
    return result.scalar_one() or 0


async def create_exam(
    db: AsyncSession,
    *,
    exam_id: str,
    title: str,
    description: str | None = None,
    duration: int | None = None,
    start_time=None,
    end_time=None,
) -> Exam:
    """创建考试（供脚本初始化演示数据使用）。"""
    exam = Exam(
        id=exam_id,
        title=title,
        description=description,
        duration=duration,
        start_time=start_time,
        end_time=end_time,
    )
    db.add(exam)
    await db.commit()
    await db.refresh(exam)
    return exam


async def add_question(
    db: AsyncSession,
    *,
    question_id: str,
    exam_id: str,
    question_text: str,
    options: dict[str, str] | None = None,
    correct_answer: str | None = None,
    solution: str | None = None,
) -> ExamQuestion:
    """插入一道题目并 flush，不 commit，由调用方统一提交。options 形如 {'a': '...', 'b': '...'}。"""
    options = options or {}
    q = ExamQuestion(
        id=question_id,
        exam_id=exam_id,
        question_text=question_text,
        option_a=options.get("a"),
        option_b=options.get("b"),
        option_c=options.get("c"),
        option_d=options.get("d"),
        correct_answer=correct_answer,
        solution=solution,
    )
    db.add(q)
    await db.flush()
    return q
