import asyncio
from datetime import datetime, timedelta, timezone

from app.services.exam_timer import ExamTimer, compute_duration_seconds

START = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_explicit_duration_wins():
    assert compute_duration_seconds(30, START, START + timedelta(hours=5)) == 1800


def test_duration_derived_from_window_is_floored():
    assert compute_duration_seconds(None, START, START + timedelta(seconds=90.7)) == 90
    assert compute_duration_seconds(0, START, START + timedelta(minutes=45)) == 2700


def test_duration_clamped_and_missing_window():
    assert compute_duration_seconds(None, START, START - timedelta(minutes=5)) == 0
    assert compute_duration_seconds(None, START, None) == 0
    assert compute_duration_seconds(None, None, None) == 0


def test_thirty_minutes_reaches_zero_after_1800_ticks():
    timer = ExamTimer(compute_duration_seconds(30, None, None))
    assert timer.remaining == 1800

    fired = [timer.tick() for _ in range(1800)]

    assert fired.count(True) == 1
    assert fired[-1] is True
    assert timer.remaining == 0
    assert timer.expired
    assert timer.tick() is False
    assert timer.remaining == 0


async def test_run_calls_on_expire_once():
    calls = []

    async def on_expire():
        calls.append("expired")

    timer = ExamTimer(5, interval=0)
    task = timer.start(on_expire)
    await task

    assert calls == ["expired"]
    assert timer.remaining == 0
    assert not timer.running


async def test_cancel_stops_countdown():
    calls = []

    async def on_expire():
        calls.append("expired")

    timer = ExamTimer(60, interval=10)
    task = timer.start(on_expire)
    await asyncio.sleep(0)
    timer.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert calls == []
    assert timer.remaining == 60


async def test_untimed_exam_has_no_countdown():
    async def on_expire():
        raise AssertionError("should not fire")

    timer = ExamTimer(0, interval=0)

    assert timer.start(on_expire) is None
    assert not timer.expired
    assert timer.tick() is False
