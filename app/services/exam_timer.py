"""考试倒计时。按跳计数（每跳一秒），只近似墙钟，不保证实时。"""
import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable

from app.core.config import settings

logger = logging.getLogger(__name__)


def compute_duration_seconds(
    duration_minutes: int | None,
    start_time: datetime | None,
    end_time: datetime | None,
) -> int:
    """
    有显式时长（分钟，>0）时取 分钟 × 60；
    否则取 floor(end_time - start_time) 秒，小于 0 按 0 处理；时间缺失也是 0。
    """
    if duration_minutes:
        return max(int(duration_minutes) * 60, 0)
    if start_time is None or end_time is None:
        return 0
    seconds = math.floor((end_time - start_time).total_seconds())
    return max(seconds, 0)


class ExamTimer:
    def __init__(self, duration_seconds: int, interval: float | None = None):
        self.duration_seconds = max(int(duration_seconds), 0)
        self.remaining = self.duration_seconds
        self.interval = settings.exam_tick_seconds if interval is None else interval
        self._fired = False
        self._task: asyncio.Task | None = None

    @property
    def expired(self) -> bool:
        return self.duration_seconds > 0 and self.remaining == 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> bool:
        """走一跳。只有恰好走到 0 的那一跳返回 True，之后再 tick 都是空操作。"""
        if self._fired or self.remaining <= 0:
            return False
        self.remaining -= 1
        if self.remaining == 0:
            self._fired = True
            return True
        return False

    async def run(self, on_expire: Callable[[], Awaitable[None]]) -> None:
        """每跳之间 sleep 一个 interval；到 0 时 await on_expire 一次后退出。"""
        while self.remaining > 0:
            await asyncio.sleep(self.interval)
            if self.tick():
                logger.info("[timer] 倒计时结束 duration=%ds，触发自动交卷", self.duration_seconds)
                try:
                    await on_expire()
                except Exception:
                    logger.exception("[timer] 自动交卷回调出错")
                return

    def start(self, on_expire: Callable[[], Awaitable[None]]) -> asyncio.Task | None:
        """在当前事件循环里启动倒计时任务。时长为 0（不限时）时不启动。"""
        if self.duration_seconds <= 0 or self.running:
            return self._task
        self._task = asyncio.create_task(self.run(on_expire))
        return self._task

    def cancel(self) -> None:
        """停止倒计时（手动交卷 / 离开页面）。在倒计时任务自身内部调用时不取消自己。"""
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
