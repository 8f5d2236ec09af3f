"""
Pytest configuration: 문제 은행 / 채점 서버 / 카메라 대역(fake)
"""
from contextlib import asynccontextmanager

import pytest

from proctored_exam.errors import ResourceUnavailable, SubmissionFailure
from proctored_exam.models.question_model import QuestionContent
from proctored_exam.services.exam_controller import ExamController


def make_content(position: int, n_options: int = 4) -> QuestionContent:
    return QuestionContent(
        id=100 + position,
        text=f"Question {position}",
        options=[f"Option {chr(65 + i)}" for i in range(n_options)],
        position=position,
    )


class FakeSource:
    """위치별로 실패/지연을 지정할 수 있는 문제 조회 대역."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.gates = {}

    async def fetch(self, position):
        self.calls.append(position)
        gate = self.gates.get(position)
        if gate is not None:
            await gate.wait()
        failure = self.failures.get(position)
        if failure is not None:
            raise failure
        return make_content(position)


class FakeSubmitter:

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def submit(self, position, question_id, option_index, elapsed_seconds):
        self.calls.append((position, question_id, option_index, elapsed_seconds))
        if self.fail:
            raise SubmissionFailure("grading service down")
        return {"ok": True}


class FakeMonitor:

    def __init__(self, available=True):
        self.available = available
        self.acquired = 0
        self.released = []

    def acquire(self):
        if not self.available:
            raise ResourceUnavailable("no camera")
        self.acquired += 1
        return f"handle-{self.acquired}"

    def release(self, handle):
        self.released.append(handle)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def monitor():
    return FakeMonitor()


@pytest.fixture
def make_controller(source, submitter, monitor):
    """타이머가 스스로 돌지 않는 컨트롤러 (틱은 테스트에서 직접 호출)."""
    def _make(**kwargs):
        kwargs.setdefault("tick_interval", 3600)
        return ExamController(source, submitter, monitor, **kwargs)
    return _make


@pytest.fixture
def run_exam(make_controller):
    """초기화 + 첫 문제 로드까지 마친 컨트롤러를 제공하고, 끝나면 정리한다."""
    @asynccontextmanager
    async def _run(total=5, duration=180, ready=True, **kwargs):
        controller = make_controller(**kwargs)
        async with controller:
            await controller.initialize(total, duration)
            if ready:
                await controller.wait_ready()
            try:
                yield controller
            finally:
                for gate in getattr(controller._source, "gates", {}).values():
                    gate.set()
                await controller.drain()
    return _run

