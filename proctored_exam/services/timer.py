"""
services/timer.py

시험 카운트다운 타이머.

interval 초마다 on_tick 코루틴을 호출하는 취소 가능한 주기 태스크.
on_tick 이 False 를 돌려주면 루프를 끝낸다. 남은 시간 차감과 자동 제출
판단은 컨트롤러(on_tick 쪽)의 직렬화 지점 안에서 이뤄진다.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[bool]]


class ExamTimer:

    def __init__(self, on_tick: TickCallback, interval: float = 1.0):
        self.interval = interval
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.create_task(self._run(), name="exam-timer")

    def stop(self) -> None:
        """타이머를 멈춘다. 여러 번 호출해도 안전."""
        self._stopped = True
        task = self._task
        if task is None or task.done():
            return
        # 틱 콜백 안(자동 제출)에서 호출된 경우 자기 자신은 취소하지 않고 루프가 스스로 끝난다.
        if task is not asyncio.current_task():
            task.cancel()

    async def wait_stopped(self) -> None:
        if self._task is None or self._task is asyncio.current_task():
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _run(self) -> None:
        # 틱 처리 시간이 누적되지 않도록 시작 시각 기준의 고정 마감 시각에 맞춘다.
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while not self._stopped:
            next_at += self.interval
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if self._stopped:
                break
            try:
                keep_going = await self._on_tick()
            except Exception:
                logger.exception("타이머 틱 처리 중 오류")
                raise
            if not keep_going:
                break
        logger.info("시험 타이머 종료")
