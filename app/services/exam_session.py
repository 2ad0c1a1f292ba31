"""一次考试会话：未开始 → 进行中 → 已提交。

会话只存在于内存，由当前考试流程独占；离开页面（discard）即丢弃，不做草稿保存。
手动交卷与倒计时自动交卷可能撞在一起，只靠“已提交”守卫互斥：先到者生效，后到者为空操作。
"""
import enum
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ExamLoadError, SessionNotActiveError, SessionStateError
from app.services.attempt_service import record_attempt
from app.services.exam_timer import ExamTimer
from app.services.grading_service import GradeResult, grade_answers
from app.services.question_loader import ExamSnapshot, QuestionSnapshot

logger = logging.getLogger(__name__)

WARNING_ANSWERS_INCOMPLETE = "answers_incomplete"
WARNING_EMPTY_EXAM = "empty_exam"


class SessionStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class AnswerTracker:
    """question_id -> 选项字母。同一题重复选择以最后一次为准；冻结后拒绝修改。"""

    def __init__(self):
        self._selections: dict[str, str] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def select(self, question_id: str, option_key: str) -> None:
        if self._frozen:
            raise SessionNotActiveError(f"answers are frozen, question_id={question_id}")
        # 选项字母统一小写，与正确答案标记的比较规则一致
        self._selections[question_id] = option_key.strip().lower()

    def get(self, question_id: str) -> str | None:
        return self._selections.get(question_id)

    def snapshot(self) -> dict[str, str]:
        return dict(self._selections)

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    def __len__(self) -> int:
        return len(self._selections)


@dataclass(frozen=True)
class SubmitOutcome:
    attempt_id: str
    submitted_at: datetime
    grade: GradeResult
    answers_saved: bool
    reason: str

    @property
    def warnings(self) -> list[str]:
        out = []
        if not self.answers_saved:
            out.append(WARNING_ANSWERS_INCOMPLETE)
        if self.grade.degenerate:
            out.append(WARNING_EMPTY_EXAM)
        return out


class ExamSession:
    def __init__(self, exam: ExamSnapshot, student_id: str | None = None, session_id: str | None = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.exam = exam
        self.student_id = student_id
        self.status = SessionStatus.NOT_STARTED
        self.questions: list[QuestionSnapshot] = []
        self.answers = AnswerTracker()
        self.timer: ExamTimer | None = None
        self.outcome: SubmitOutcome | None = None
        self.started_monotonic: float | None = None
        self.submitted_monotonic: float | None = None
        self._submitting = False

    @property
    def exam_id(self) -> str:
        return self.exam.id

    @property
    def time_left(self) -> int | None:
        """剩余秒数；不限时的考试返回 None。"""
        if self.timer is None or self.timer.duration_seconds <= 0:
            return None
        return self.timer.remaining

    def start(self, questions: list[QuestionSnapshot]) -> None:
        if self.status is not SessionStatus.NOT_STARTED:
            raise SessionStateError(f"session {self.session_id} already started")
        if not questions:
            raise ExamLoadError(f"exam {self.exam_id} has no questions")
        self.questions = list(questions)
        self.timer = ExamTimer(self.exam.duration_seconds)
        self.status = SessionStatus.IN_PROGRESS
        self.started_monotonic = time.monotonic()
        logger.info(
            "[session] 开始 session_id=%s exam_id=%s 题目数=%d 时长=%ds",
            self.session_id,
            self.exam_id,
            len(self.questions),
            self.exam.duration_seconds,
        )

    def select(self, question_id: str, option_key: str) -> None:
        if self.status is not SessionStatus.IN_PROGRESS:
            raise SessionNotActiveError(f"session {self.session_id} is {self.status.value}")
        if self.timer is not None and self.timer.expired:
            # 时间已到：不再接受作答，但允许重新交卷（自动交卷失败时）
            raise SessionNotActiveError(f"session {self.session_id} time is up")
        self.answers.select(question_id, option_key)

    def start_countdown(self, session_factory: Callable) -> None:
        """启动倒计时；到点后用新的数据库 session 自动交卷。"""
        if self.timer is None:
            return

        async def _expire() -> None:
            async with session_factory() as db:
                try:
                    await self.submit(db, reason="timeout")
                except Exception:
                    logger.exception("[session] 自动交卷失败 session_id=%s", self.session_id)

        self.timer.start(_expire)

    def stop_countdown(self) -> None:
        if self.timer is not None:
            self.timer.cancel()

    async def submit(
        self,
        db: AsyncSession,
        *,
        student_id: str | None = None,
        reason: str = "manual",
    ) -> SubmitOutcome | None:
        """
        判分并落库。已提交或正在提交时直接返回 None，不重复写库。
        作答记录写入失败（或未登录）时异常上抛，会话回到进行中，可重新提交。
        """
        if self.status is SessionStatus.SUBMITTED or self._submitting:
            logger.info("[submit] 重复提交已忽略 session_id=%s reason=%s", self.session_id, reason)
            return None
        if self.status is not SessionStatus.IN_PROGRESS:
            raise SessionStateError(f"session {self.session_id} has not started")

        # 守卫必须在第一个 await 之前置位
        self._submitting = True
        self.answers.freeze()
        if student_id and not self.student_id:
            self.student_id = student_id
        try:
            grade = grade_answers(self.questions, self.answers.snapshot())
            recorded = await record_attempt(
                db,
                exam_id=self.exam_id,
                student_id=student_id or self.student_id,
                grade=grade,
            )
        except Exception:
            self.answers.unfreeze()
            self._submitting = False
            raise

        self.outcome = SubmitOutcome(
            attempt_id=recorded.attempt_id,
            submitted_at=recorded.submitted_at,
            grade=grade,
            answers_saved=recorded.answers_saved,
            reason=reason,
        )
        self.status = SessionStatus.SUBMITTED
        self.submitted_monotonic = time.monotonic()
        self._submitting = False
        self.stop_countdown()
        logger.info(
            "[submit] session_id=%s attempt_id=%s reason=%s 对=%d 错=%d 未答=%d 得分=%d",
            self.session_id,
            recorded.attempt_id,
            reason,
            grade.correct_count,
            grade.wrong_count,
            grade.skipped_count,
            grade.percent_score,
        )
        return self.outcome
