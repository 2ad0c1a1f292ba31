"""作答回顾：重新读出作答记录、逐题作答与题目内容，拼成只读的回顾数据。

与判分共用 option_is_answer 标出正确选项；逐题的对错直接用交卷时保存的 is_correct，不重新判分。
题目、选项或解析缺失时用占位文字，单个字段缺失不影响整页。
"""
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ReviewLoadError
from app.models.attempt import ExamAttempt
from app.models.attempt_answer import AttemptAnswer
from app.models.question import ExamQuestion
from app.repositories.attempt_repository import get_answers_with_questions, get_attempt_with_exam
from app.schemas.attempts import AttemptReviewResponse, ReviewItem, ReviewOption
from app.services.grading_service import OPTION_KEYS, option_is_answer

logger = logging.getLogger(__name__)

MISSING_QUESTION_TEXT = "This question is no longer available."
MISSING_SOLUTION_TEXT = "No solution provided."
MISSING_OPTION_TEXT = "-"


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def _review_options(question: ExamQuestion | None, selected: str | None) -> list[ReviewOption]:
    options = question.options if question is not None else {}
    marker = question.correct_answer if question is not None else None
    out: list[ReviewOption] = []
    for key in OPTION_KEYS:
        text = options.get(key)
        if text is None and key != selected:
            continue
        out.append(
            ReviewOption(
                key=key,
                text=text if text is not None else MISSING_OPTION_TEXT,
                isCorrect=option_is_answer(key, text, marker),
                isSelected=key == selected,
            )
        )
    # 选了 a-d 以外的键（历史脏数据）也要展示出来
    if selected and selected not in OPTION_KEYS:
        out.append(ReviewOption(key=selected, text=MISSING_OPTION_TEXT, isSelected=True))
    return out


def build_review_item(answer: AttemptAnswer, question: ExamQuestion | None) -> ReviewItem:
    selected = answer.selected_option or None
    solution = question.solution if question is not None else None
    question_text = question.question_text if question is not None else None
    return ReviewItem(
        questionId=answer.question_id,
        questionText=question_text or MISSING_QUESTION_TEXT,
        options=_review_options(question, selected),
        selectedOption=selected,
        isCorrect=bool(answer.is_correct),
        isSkipped=selected is None,
        solution=solution or MISSING_SOLUTION_TEXT,
        hasSolution=bool(solution),
    )


def _review_from_rows(
    attempt: ExamAttempt,
    exam_title: str | None,
    rows: list[tuple[AttemptAnswer, ExamQuestion | None]],
) -> AttemptReviewResponse:
    return AttemptReviewResponse(
        attemptId=attempt.id,
        examId=attempt.exam_id,
        examTitle=exam_title,
        score=attempt.score,
        submittedAt=_iso(attempt.submitted_at),
        items=[build_review_item(a, q) for a, q in rows],
    )


async def load_attempt_review(
    db: AsyncSession,
    attempt_id: str,
) -> tuple[ExamAttempt, AttemptReviewResponse] | None:
    """作答记录不存在返回 None；查询出错抛 ReviewLoadError。返回原始记录供调用方做归属校验。"""
    try:
        found = await get_attempt_with_exam(db, attempt_id)
        if found is None:
            return None
        attempt, exam = found
        rows = await get_answers_with_questions(db, attempt_id)
    except SQLAlchemyError as e:
        logger.exception("[review] 读取作答回顾失败 attempt_id=%s", attempt_id)
        raise ReviewLoadError(str(e)) from e
    if not rows:
        logger.warning("[review] attempt_id=%s 没有逐题记录（可能交卷时部分写入失败）", attempt_id)
    return attempt, _review_from_rows(attempt, exam.title if exam is not None else None, rows)


async def build_attempt_review(db: AsyncSession, attempt_id: str) -> AttemptReviewResponse | None:
    loaded = await load_attempt_review(db, attempt_id)
    return loaded[1] if loaded else None
