import asyncio

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    AttemptWriteError,
    AuthMissingError,
    ExamLoadError,
    SessionNotActiveError,
    SessionStateError,
)
from app.repositories.attempt_repository import count_attempts, get_answers_with_questions
from app.services import attempt_service, question_loader
from app.services.exam_session import (
    WARNING_ANSWERS_INCOMPLETE,
    AnswerTracker,
    ExamSession,
    SessionStatus,
)
from app.services.exam_timer import ExamTimer
from app.services.question_loader import ExamSnapshot, load_exam, load_questions
from app.services.session_registry import ExamSessionRegistry


async def _started_session(db, exam_id, student_id=None):
    exam = await load_exam(db, exam_id)
    session = ExamSession(exam, student_id=student_id)
    session.start(await load_questions(db, exam_id))
    return session


def test_tracker_last_write_wins():
    tracker = AnswerTracker()
    tracker.select("q1", "a")
    tracker.select("q1", "c")
    tracker.select("q2", "b")

    assert tracker.snapshot() == {"q1": "c", "q2": "b"}
    assert tracker.get("q3") is None


def test_tracker_normalizes_option_key():
    tracker = AnswerTracker()
    tracker.select("q1", " B ")

    assert tracker.get("q1") == "b"


def test_frozen_tracker_rejects_selection():
    tracker = AnswerTracker()
    tracker.select("q1", "a")
    tracker.freeze()

    with pytest.raises(SessionNotActiveError):
        tracker.select("q1", "b")
    assert tracker.get("q1") == "a"


def test_start_requires_questions():
    session = ExamSession(ExamSnapshot(id="e1", title="Empty"))

    with pytest.raises(ExamLoadError):
        session.start([])
    assert session.status is SessionStatus.NOT_STARTED


def test_select_before_start_is_rejected():
    session = ExamSession(ExamSnapshot(id="e1", title="Not yet"))

    with pytest.raises(SessionNotActiveError):
        session.select("q1", "a")


async def test_submit_before_start_is_rejected(db):
    session = ExamSession(ExamSnapshot(id="e1", title="Not yet"))

    with pytest.raises(SessionStateError):
        await session.submit(db, student_id="someone")


async def test_start_sets_countdown_from_exam(db, make_exam):
    exam_id, question_ids = await make_exam(duration=30)

    session = await _started_session(db, exam_id)

    assert session.status is SessionStatus.IN_PROGRESS
    assert [q.id for q in session.questions] == question_ids
    assert session.time_left == 1800

    with pytest.raises(SessionStateError):
        session.start(session.questions)


async def test_submit_records_attempt_and_answers(db, make_exam, make_user):
    user, _ = await make_user()
    exam_id, (q1, q2, q3, q4) = await make_exam(["a", "b", "c", "d"])
    session = await _started_session(db, exam_id, student_id=user.id)
    session.select(q1, "a")
    session.select(q2, "x")
    session.select(q3, "c")

    outcome = await session.submit(db)

    assert session.status is SessionStatus.SUBMITTED
    assert outcome.grade.percent_score == 50
    assert outcome.answers_saved
    assert outcome.warnings == []
    assert await count_attempts(db, exam_id, user.id) == 1
    rows = await get_answers_with_questions(db, outcome.attempt_id)
    saved = {a.question_id: (a.selected_option, a.is_correct) for a, _ in rows}
    assert saved == {q1: ("a", True), q2: ("x", False), q3: ("c", True), q4: (None, False)}

    with pytest.raises(SessionNotActiveError):
        session.select(q4, "d")


async def test_racing_submits_write_once(db, make_exam, make_user):
    user, _ = await make_user()
    exam_id, (q1, *_) = await make_exam()
    session = await _started_session(db, exam_id, student_id=user.id)
    session.select(q1, "a")

    first, second = await asyncio.gather(
        session.submit(db, reason="manual"),
        session.submit(db, reason="timeout"),
    )

    assert first is not None
    assert second is None
    assert await session.submit(db) is None
    assert await count_attempts(db, exam_id, user.id) == 1
    assert len(await get_answers_with_questions(db, first.attempt_id)) == 4


async def test_submit_without_student_writes_nothing(db, make_exam):
    exam_id, (q1, *_) = await make_exam()
    session = await _started_session(db, exam_id)
    session.select(q1, "a")

    with pytest.raises(AuthMissingError):
        await session.submit(db)

    assert session.status is SessionStatus.IN_PROGRESS
    session.select(q1, "b")
    assert session.answers.get(q1) == "b"


async def test_attempt_write_failure_allows_retry(db, make_exam, make_user, monkeypatch):
    user, _ = await make_user()
    exam_id, _ = await make_exam()
    session = await _started_session(db, exam_id, student_id=user.id)

    async def broken_create_attempt(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(attempt_service, "create_attempt", broken_create_attempt)
    with pytest.raises(AttemptWriteError):
        await session.submit(db)

    assert session.status is SessionStatus.IN_PROGRESS
    assert session.outcome is None
    assert await count_attempts(db, exam_id, user.id) == 0

    monkeypatch.undo()
    outcome = await session.submit(db)

    assert outcome is not None
    assert await count_attempts(db, exam_id, user.id) == 1


async def test_answer_write_failure_keeps_attempt(db, make_exam, make_user, monkeypatch):
    user, _ = await make_user()
    exam_id, (q1, *_) = await make_exam()
    session = await _started_session(db, exam_id, student_id=user.id)
    session.select(q1, "a")

    async def broken_answers(*args, **kwargs):
        raise SQLAlchemyError("batch insert failed")

    monkeypatch.setattr(attempt_service, "create_attempt_answers", broken_answers)
    outcome = await session.submit(db)

    assert session.status is SessionStatus.SUBMITTED
    assert outcome.answers_saved is False
    assert WARNING_ANSWERS_INCOMPLETE in outcome.warnings
    assert outcome.grade.correct_count == 1
    assert await count_attempts(db, exam_id, user.id) == 1
    assert await get_answers_with_questions(db, outcome.attempt_id) == []


async def test_timer_expiry_submits_once(db, session_factory, make_exam, make_user):
    user, _ = await make_user()
    exam_id, (q1, *_) = await make_exam()
    session = await _started_session(db, exam_id, student_id=user.id)
    session.select(q1, "a")
    session.timer = ExamTimer(3, interval=0)

    session.start_countdown(session_factory)
    await session.timer._task

    assert session.status is SessionStatus.SUBMITTED
    assert session.outcome.reason == "timeout"
    assert session.time_left == 0
    assert await session.submit(db) is None
    assert await count_attempts(db, exam_id, user.id) == 1


async def test_manual_submit_stops_countdown(db, session_factory, make_exam, make_user):
    user, _ = await make_user()
    exam_id, _ = await make_exam()
    session = await _started_session(db, exam_id, student_id=user.id)
    session.timer = ExamTimer(600, interval=10)
    session.start_countdown(session_factory)
    task = session.timer._task

    await session.submit(db)
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert session.timer.remaining == 600
    assert await count_attempts(db, exam_id, user.id) == 1


async def test_registry_prunes_old_submitted_sessions(db, make_exam, make_user):
    user, _ = await make_user()
    exam_id, _ = await make_exam()
    registry = ExamSessionRegistry()
    done = registry.add(await _started_session(db, exam_id, student_id=user.id))
    open_session = registry.add(await _started_session(db, exam_id, student_id=user.id))
    await done.submit(db)

    assert registry.prune(max_age_seconds=3600) == 0
    assert registry.prune(max_age_seconds=0) == 1
    assert registry.get(done.session_id) is None
    assert registry.get(open_session.session_id) is open_session
    assert registry.discard(open_session.session_id)
    assert len(registry) == 0


async def test_question_fetch_failure_loads_nothing(db, make_exam, monkeypatch):
    exam_id, _ = await make_exam()

    async def broken_questions(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(question_loader, "get_questions_by_exam_id", broken_questions)

    assert await load_questions(db, exam_id) == []


async def test_uppercase_selection_grades_against_lowercase_marker(db, make_exam, make_user):
    user, _ = await make_user()
    exam_id, (q1, q2, *_) = await make_exam(["b", "c", "a", "d"])
    session = await _started_session(db, exam_id, student_id=user.id)
    session.select(q1, "B")
    session.select(q2, " C")

    outcome = await session.submit(db)

    assert outcome.grade.correct_count == 2
    rows = await get_answers_with_questions(db, outcome.attempt_id)
    saved = {a.question_id: (a.selected_option, a.is_correct) for a, _ in rows}
    assert saved[q1] == ("b", True)
    assert saved[q2] == ("c", True)


async def test_expired_session_rejects_answers_but_allows_submit(db, session_factory, make_exam, make_user):
    user, _ = await make_user()
    exam_id, (q1, q2, *_) = await make_exam()
    session = await _started_session(db, exam_id)
    session.select(q1, "a")
    session.timer = ExamTimer(2, interval=0)

    session.start_countdown(session_factory)
    await session.timer._task

    # 未登录，自动交卷失败
    assert session.status is SessionStatus.IN_PROGRESS
    with pytest.raises(SessionNotActiveError):
        session.select(q2, "b")
    assert session.answers.get(q2) is None

    outcome = await session.submit(db, student_id=user.id)

    assert outcome is not None
    assert outcome.grade.correct_count == 1
    assert await count_attempts(db, exam_id, user.id) == 1


async def test_registry_prunes_abandoned_sessions(db, make_exam, make_user):
    user, _ = await make_user()
    untimed_id, _ = await make_exam(duration=None)
    timed_id, _ = await make_exam(duration=30)
    registry = ExamSessionRegistry()
    untimed = registry.add(await _started_session(db, untimed_id, student_id=user.id))
    timed = registry.add(await _started_session(db, timed_id, student_id=user.id))

    assert registry.prune(max_age_seconds=0) == 1
    assert registry.get(untimed.session_id) is None
    assert registry.get(timed.session_id) is timed

    timed.started_monotonic -= 1800
    assert registry.prune(max_age_seconds=60) == 0
    timed.started_monotonic -= 60
    assert registry.prune(max_age_seconds=60) == 1
    assert len(registry) == 0
