"""进程内的考试会话表。会话不落库，进程重启即丢失。"""
import logging
import time

from app.core.config import settings
from app.services.exam_session import ExamSession, SessionStatus

logger = logging.getLogger(__name__)


class ExamSessionRegistry:
    def __init__(self):
        self._sessions: dict[str, ExamSession] = {}

    def add(self, session: ExamSession) -> ExamSession:
        self.prune()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> ExamSession | None:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        """离开考试页：停止倒计时并丢弃全部未提交答案。"""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.stop_countdown()
        if session.status is not SessionStatus.SUBMITTED:
            logger.info(
                "[registry] 未提交即离开 session_id=%s 丢弃答案数=%d", session_id, len(session.answers)
            )
        return True

    def prune(self, max_age_seconds: float | None = None) -> int:
        """
        清理过期会话，返回清理数量：
        已提交的会话在提交后保留 max_age_seconds；
        未提交的会话在开考后保留 考试时长 + max_age_seconds（不限时的只按 max_age_seconds）。
        """
        if max_age_seconds is None:
            max_age_seconds = settings.session_retention_minutes * 60
        now = time.monotonic()
        stale = [sid for sid, s in self._sessions.items() if self._is_stale(s, now, max_age_seconds)]
        for sid in stale:
            session = self._sessions.pop(sid)
            session.stop_countdown()
        if stale:
            logger.info("[registry] 清理过期会话 %d 个", len(stale))
        return len(stale)

    @staticmethod
    def _is_stale(session: ExamSession, now: float, max_age_seconds: float) -> bool:
        if session.submitted_monotonic is not None:
            return now - session.submitted_monotonic >= max_age_seconds
        if session.started_monotonic is None:
            return False
        return now - session.started_monotonic >= session.exam.duration_seconds + max_age_seconds

    def clear(self) -> None:
        for session in self._sessions.values():
            session.stop_countdown()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


exam_sessions = ExamSessionRegistry()
