"""考试信息与考试会话：开始考试、选择答案、交卷、离开（丢弃会话）。"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.api.errors import to_http_exception
from app.core.db import get_db, get_session_factory
from app.core.exceptions import AuthMissingError, ExamLoadError, ExamServiceError
from app.models.user import User
from app.repositories.exam_repository import get_question_count_by_exam_id
from app.schemas.exams import (
    ExamInfoResponse,
    ScoreSummary,
    SelectAnswerRequest,
    SessionQuestionItem,
    SessionStateResponse,
    SubmitResponse,
)
from app.services.exam_session import ExamSession, SubmitOutcome
from app.services.question_loader import load_exam, load_questions
from app.services.session_registry import exam_sessions

logger = logging.getLogger(__name__)
router = APIRouter()


def _submit_response(outcome: SubmitOutcome) -> SubmitResponse:
    g = outcome.grade
    return SubmitResponse(
        attemptId=outcome.attempt_id,
        submittedAt=outcome.submitted_at.isoformat(),
        reason=outcome.reason,
        score=ScoreSummary(
            correct=g.correct_count,
            wrong=g.wrong_count,
            skipped=g.skipped_count,
            total=g.total_count,
            percent=g.percent_score,
        ),
        answersSaved=outcome.answers_saved,
        warnings=outcome.warnings,
    )


def _state_response(session: ExamSession) -> SessionStateResponse:
    return SessionStateResponse(
        sessionId=session.session_id,
        examId=session.exam_id,
        title=session.exam.title,
        status=session.status.value,
        timeLeft=session.time_left,
        answers=session.answers.snapshot(),
        questions=[
            SessionQuestionItem(questionId=q.id, questionText=q.question_text, options=q.options)
            for q in session.questions
        ],
        result=_submit_response(session.outcome) if session.outcome else None,
    )


def _get_session_for(session_id: str, user: User | None) -> ExamSession:
    """会话不存在或属于其他学生时一律 404。"""
    session = exam_sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="exam session not found")
    if session.student_id and (user is None or user.id != session.student_id):
        raise HTTPException(status_code=404, detail="exam session not found")
    return session


@router.get("/exams/{exam_id}", response_model=ExamInfoResponse)
async def get_exam_info(exam_id: str, db: AsyncSession = Depends(get_db)):
    """开考前的考试信息页。"""
    exam = await load_exam(db, exam_id)
    if exam is None:
        raise HTTPException(status_code=404, detail="exam not found")
    try:
        question_count = await get_question_count_by_exam_id(db, exam_id)
    except SQLAlchemyError as e:
        logger.error("[exam-info] 统计题目数失败 exam_id=%s: %s", exam_id, e)
        raise to_http_exception(ExamLoadError(str(e)))
    return ExamInfoResponse(
        examId=exam.id,
        title=exam.title,
        description=exam.description,
        durationMinutes=round(exam.duration_seconds / 60),
        startTime=exam.start_time.isoformat() if exam.start_time else None,
        endTime=exam.end_time.isoformat() if exam.end_time else None,
        questionCount=question_count,
    )


@router.post("/exams/{exam_id}/sessions", response_model=SessionStateResponse, status_code=201)
async def start_exam_session(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
    session_factory=Depends(get_session_factory),
):
    """
    开始考试：加载题目、建立会话并启动倒计时。题目为空或加载失败时不允许开始。
    """
    exam = await load_exam(db, exam_id)
    if exam is None:
        raise HTTPException(status_code=404, detail=ExamLoadError.user_message)
    questions = await load_questions(db, exam_id)
    session = ExamSession(exam, student_id=user.id if user else None)
    try:
        session.start(questions)
    except ExamServiceError as e:
        raise to_http_exception(e)
    exam_sessions.add(session)
    session.start_countdown(session_factory)
    return _state_response(session)


@router.get("/exam-sessions/{session_id}", response_model=SessionStateResponse)
async def get_exam_session(session_id: str, user: User | None = Depends(get_optional_user)):
    """会话当前状态与剩余时间，前端用来刷新倒计时。"""
    return _state_response(_get_session_for(session_id, user))


@router.put("/exam-sessions/{session_id}/answers", response_model=SessionStateResponse)
async def select_answer(
    session_id: str,
    body: SelectAnswerRequest,
    user: User | None = Depends(get_optional_user),
):
    """选择某题的选项，同一题以最后一次为准；交卷后拒绝。"""
    session = _get_session_for(session_id, user)
    try:
        session.select(body.question_id, body.option)
    except ExamServiceError as e:
        raise to_http_exception(e)
    return _state_response(session)


@router.post("/exam-sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit_exam_session(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    """
    交卷：判分后先写作答记录再写逐题记录。已提交的会话直接返回第一次的结果，不会重复写库。
    作答记录写入失败时返回 503，会话仍在进行中，可以再次提交。
    """
    session = _get_session_for(session_id, user)
    if session.outcome is not None:
        return _submit_response(session.outcome)
    if user is None:
        raise to_http_exception(AuthMissingError("submit without signed-in user"))
    try:
        outcome = await session.submit(db, student_id=user.id)
    except ExamServiceError as e:
        raise to_http_exception(e)
    if outcome is None:
        outcome = session.outcome
    if outcome is None:
        raise HTTPException(status_code=409, detail="Your exam is already being submitted.")
    if outcome.warnings:
        logger.warning("[submit] session_id=%s warnings=%s", session_id, outcome.warnings)
    return _submit_response(outcome)


@router.delete("/exam-sessions/{session_id}", status_code=204)
async def discard_exam_session(session_id: str, user: User | None = Depends(get_optional_user)):
    """离开考试页：停止倒计时，丢弃未提交的答案。"""
    session = _get_session_for(session_id, user)
    exam_sessions.discard(session.session_id)
    return Response(status_code=204)
