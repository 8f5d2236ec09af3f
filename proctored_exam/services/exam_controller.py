"""
services/exam_controller.py

시험 세션 컨트롤러: 응시 1회분의 상태 머신.

상태: initializing → active → submitted (종료 상태)
  - initializing → active : 첫 문제 조회가 끝났을 때 (성공/실패 무관)
  - active → submitted    : submit() 또는 타이머 0 도달 (자동 제출, 확인 절차 없음)

직렬화:
  모든 상태 변경 연산과 타이머 틱은 세션 단위 asyncio.Lock 하나로 직렬화한다.
  네트워크 호출(문제 조회, 답안 전송)은 락 밖의 별도 태스크에서 수행되므로
  조회/전송이 진행 중이어도 타이머는 계속 돈다.

조회 결과 반영 규칙:
  - 세션이 이미 제출(또는 종료)되었으면 결과를 버린다.
  - 응답이 도착했을 때 현재 위치가 조회 대상과 다르면 결과를 버린다.
  - 이미 캐시된 문제는 재방문 시 다시 조회하지 않는다.

오류 정책:
  조회/전송/카메라 실패는 로그와 관찰 가능한 상태로만 남기고 예외를 던지지 않는다.
  호출자에게 전달되는 예외는 InvalidOperation 뿐이다.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from config import TIMER_TICK_SECONDS
from proctored_exam.errors import FetchErrorKind, FetchFailure, InvalidOperation, ResourceUnavailable, SubmissionFailure
from proctored_exam.models.question_model import Question, QuestionContent
from proctored_exam.models.session_state import ExamPhase, ExamSession, ExamStats
from proctored_exam.services.exam_service import build_palette, calculate_stats
from proctored_exam.services.timer import ExamTimer

logger = logging.getLogger(__name__)

SubmittedCallback = Callable[[ExamSession], None]


class ExamController:

    def __init__(
        self,
        source: Any,
        submitter: Any,
        monitor: Any,
        tick_interval: float = TIMER_TICK_SECONDS,
        on_submitted: Optional[SubmittedCallback] = None,
    ):
        """
        Args:
            source:        fetch(position) 코루틴을 가진 문제 조회 어댑터.
            submitter:     submit(position, question_id, option_index, elapsed) 코루틴을 가진 전송 어댑터.
            monitor:       acquire()/release(handle) 를 가진 감독 카메라 채널.
            tick_interval: 타이머 틱 간격 (초).
            on_submitted:  제출(수동/자동) 시 한 번 호출되는 알림 콜백.
        """
        self._source = source
        self._submitter = submitter
        self._monitor = monitor
        self._on_submitted = on_submitted

        self._lock = asyncio.Lock()
        self._timer = ExamTimer(self.tick, interval=tick_interval)
        self._session: Optional[ExamSession] = None
        self._monitor_handle: Any = None
        self._closed = False

        self._tasks: Set[asyncio.Task] = set()
        self._inflight: Dict[int, asyncio.Task] = {}
        self._initial_fetch: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "ExamController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ── 읽기 ──────────────────────────────────────────────────────────────────

    @property
    def session(self) -> ExamSession:
        if self._session is None:
            raise InvalidOperation("시험 세션이 초기화되지 않았습니다.")
        return self._session

    @property
    def phase(self) -> ExamPhase:
        return self.session.phase

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def timer_running(self) -> bool:
        return self._timer.running

    def snapshot(self) -> ExamSession:
        """표시 계층용 세션 사본."""
        return self.session.model_copy(deep=True)

    def stats(self) -> ExamStats:
        return calculate_stats(self.session.questions)

    def palette(self) -> List[Dict[str, object]]:
        session = self.session
        return build_palette(session.questions, session.current_position)

    # ── 수명 주기 ──────────────────────────────────────────────────────────────

    async def initialize(self, total_questions: int, duration_seconds: int) -> None:
        """
        문제 슬롯을 만들고 1번 문제 조회, 카메라 확보, 타이머 시작을 수행한다.
        카메라를 확보하지 못해도 시험은 감독 없이 진행된다.
        """
        if total_questions < 1:
            raise InvalidOperation(f"문제 수는 1 이상이어야 합니다: {total_questions}")
        if duration_seconds < 0:
            raise InvalidOperation(f"시험 시간은 0 이상이어야 합니다: {duration_seconds}")

        async with self._lock:
            if self._session is not None or self._closed:
                raise InvalidOperation("이미 초기화된 시험 세션입니다.")
            self._session = ExamSession(
                total_questions=total_questions,
                duration_seconds=duration_seconds,
                time_remaining_seconds=duration_seconds,
                entered_at_remaining=duration_seconds,
                questions=[Question(position=i) for i in range(1, total_questions + 1)],
            )
            self._initial_fetch = self._start_fetch(1)
            logger.info(f"시험 세션 시작 - {total_questions}문제, {duration_seconds}초")

        await self._acquire_monitoring()
        async with self._lock:
            if not self._closed and not self._session.submitted:
                self._timer.start()

    async def wait_ready(self) -> None:
        """첫 문제 조회가 끝날 때까지 대기 (initializing → active)."""
        if self._initial_fetch is not None:
            await self._initial_fetch

    async def drain(self) -> None:
        """진행 중인 조회/전송 태스크가 모두 끝날 때까지 대기."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """세션 정리: 타이머 정지, 카메라 반환. 이후 모든 변경 연산은 거부된다."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._timer.stop()
            self._release_monitoring()
        await self._timer.wait_stopped()
        logger.info("시험 세션 정리 완료")

    # ── 변경 연산 ──────────────────────────────────────────────────────────────

    async def select_option(self, index: int) -> None:
        async with self._lock:
            session = self._ensure_mutable()
            question = session.current_question
            if question.content is None:
                raise InvalidOperation(f"문제 {question.position}의 내용이 아직 없습니다.")
            if not 0 <= index < len(question.content.options):
                raise InvalidOperation(
                    f"보기 번호가 범위를 벗어났습니다: {index} (보기 {len(question.content.options)}개)"
                )
            session.pending_option = index

    async def save_and_advance(self) -> None:
        async with self._lock:
            self._commit(mark_for_review=False)

    async def mark_for_review_and_advance(self) -> None:
        async with self._lock:
            self._commit(mark_for_review=True)

    async def clear_response(self) -> None:
        async with self._lock:
            session = self._ensure_mutable()
            question = session.current_question
            session.pending_option = None
            question.selected_option = None
            question.is_answered = False

    async def jump_to(self, position: int) -> None:
        """위치 이동. 떠나는 문제의 미확정 선택은 저장하지 않고 버린다."""
        async with self._lock:
            session = self._ensure_mutable()
            if not 1 <= position <= session.total_questions:
                raise InvalidOperation(
                    f"문제 위치가 범위를 벗어났습니다: {position} (1~{session.total_questions})"
                )
            self._enter(position)

    async def previous(self) -> None:
        async with self._lock:
            session = self._ensure_mutable()
            if session.current_position <= 1:
                raise InvalidOperation("첫 번째 문제입니다.")
            self._enter(session.current_position - 1)

    async def next(self) -> None:
        async with self._lock:
            session = self._ensure_mutable()
            if session.current_position >= session.total_questions:
                raise InvalidOperation("마지막 문제입니다.")
            self._enter(session.current_position + 1)

    async def retry_fetch(self) -> None:
        """현재 문제 내용을 다시 조회 (사용자 요청 시에만)."""
        async with self._lock:
            session = self._ensure_mutable()
            if session.current_question.content is None:
                self._start_fetch(session.current_position)

    async def submit(self, reason: str = "manual") -> bool:
        """
        최종 제출. 이미 제출된 경우 아무 일도 하지 않는다.

        Returns:
            이번 호출로 제출 상태가 되었으면 True.
        """
        async with self._lock:
            return self._submit_locked(reason)

    async def tick(self) -> bool:
        """
        타이머 1틱. active 상태에서만 남은 시간을 1 줄이고, 0이 되면 자동 제출한다.

        Returns:
            타이머가 계속 돌아야 하면 True.
        """
        async with self._lock:
            if self._session is None or self._closed or self._session.submitted:
                return False
            session = self._session
            if session.phase != ExamPhase.ACTIVE:
                return True
            session.time_remaining_seconds = max(0, session.time_remaining_seconds - 1)
            if session.time_remaining_seconds == 0:
                logger.info("시험 시간 종료 - 자동 제출")
                self._submit_locked("timeout")
                return False
            return True

    # ── 내부 (락 보유 상태에서 호출) ─────────────────────────────────────────────

    def _ensure_mutable(self) -> ExamSession:
        if self._session is None:
            raise InvalidOperation("시험 세션이 초기화되지 않았습니다.")
        if self._closed:
            raise InvalidOperation("종료된 시험 세션입니다.")
        if self._session.submitted:
            raise InvalidOperation("이미 제출된 시험입니다.")
        return self._session

    def _enter(self, position: int) -> None:
        session = self._session
        question = session.question_at(position)
        session.current_position = position
        session.pending_option = question.selected_option
        session.entered_at_remaining = session.time_remaining_seconds
        if question.content is None:
            self._start_fetch(position)

    def _commit(self, mark_for_review: bool) -> None:
        session = self._ensure_mutable()
        question = session.current_question
        pending = session.pending_option
        elapsed = session.entered_at_remaining - session.time_remaining_seconds

        self._dispatch_submission(question, pending, elapsed)

        question.selected_option = pending
        question.is_answered = pending is not None
        if mark_for_review:
            question.is_marked_for_review = True

        if session.current_position < session.total_questions:
            self._enter(session.current_position + 1)

    def _submit_locked(self, reason: str) -> bool:
        if self._session is None:
            raise InvalidOperation("시험 세션이 초기화되지 않았습니다.")
        session = self._session
        if session.submitted:
            return False
        session.submitted = True
        session.phase = ExamPhase.SUBMITTED
        session.submit_reason = reason
        self._timer.stop()
        self._release_monitoring()

        stats = calculate_stats(session.questions)
        logger.info(
            f"시험 제출 완료 ({reason}) - 답함 {stats.answered}, 미답 {stats.not_answered}, "
            f"검토 {stats.marked_for_review}, 답함+검토 {stats.answered_and_marked_for_review}"
        )
        if self._on_submitted is not None:
            self._on_submitted(session)
        return True

    def _start_fetch(self, position: int) -> asyncio.Task:
        existing = self._inflight.get(position)
        if existing is not None and not existing.done():
            return existing
        question = self._session.question_at(position)
        question.is_loading = True
        question.fetch_error = None
        task = asyncio.create_task(self._fetch_content(position), name=f"fetch-question-{position}")
        self._inflight[position] = task
        self._track(task)
        return task

    def _dispatch_submission(self, question: Question, option_index: Optional[int], elapsed: int) -> None:
        if question.content is None:
            logger.warning(f"문제 {question.position}: 내용이 없어 원격 답안 전송을 건너뜁니다.")
            return
        task = asyncio.create_task(
            self._send_answer(question.position, question.content.id, option_index, elapsed),
            name=f"submit-answer-{question.position}",
        )
        self._track(task)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _release_monitoring(self) -> None:
        handle = self._monitor_handle
        self._monitor_handle = None
        if self._session is not None:
            self._session.monitoring_active = False
        if handle is None:
            return
        try:
            self._monitor.release(handle)
        except Exception as e:
            logger.warning(f"카메라 해제 중 오류: {e}")

    # ── 백그라운드 태스크 ────────────────────────────────────────────────────────

    async def _fetch_content(self, position: int) -> None:
        content: Optional[QuestionContent] = None
        failure: Optional[FetchFailure] = None
        try:
            content = await self._source.fetch(position)
        except FetchFailure as e:
            failure = e
            logger.warning(f"문제 {position} 조회 실패 ({e.kind.value}): {e}")
        except Exception as e:
            failure = FetchFailure(FetchErrorKind.NETWORK, str(e))
            logger.exception(f"문제 {position} 조회 중 예기치 못한 오류")

        async with self._lock:
            if self._inflight.get(position) is asyncio.current_task():
                del self._inflight[position]
            session = self._session
            question = session.question_at(position)
            question.is_loading = False

            if session.phase == ExamPhase.INITIALIZING and not session.submitted:
                session.phase = ExamPhase.ACTIVE
                logger.info("시험 진행 시작 (active)")

            if session.submitted or self._closed:
                logger.debug(f"문제 {position} 조회 결과 폐기 (세션 종료)")
                return
            if session.current_position != position:
                logger.debug(f"문제 {position} 조회 결과 폐기 (현재 위치 {session.current_position})")
                return

            if content is not None:
                if question.content is None:
                    question.content = content
                question.fetch_error = None
            else:
                question.fetch_error = failure.kind

    async def _send_answer(
        self,
        position: int,
        question_id: int,
        option_index: Optional[int],
        elapsed: int,
    ) -> None:
        try:
            await self._submitter.submit(position, question_id, option_index, elapsed)
        except SubmissionFailure as e:
            logger.warning(f"답안 전송 실패 (재시도 없음): {e}")
        except Exception:
            logger.exception(f"문제 {position} 답안 전송 중 예기치 못한 오류 (재시도 없음)")

    async def _acquire_monitoring(self) -> None:
        try:
            handle = await asyncio.to_thread(self._monitor.acquire)
        except ResourceUnavailable as e:
            logger.warning(f"감독 카메라를 사용할 수 없습니다. 감독 없이 진행합니다: {e}")
            return

        async with self._lock:
            if self._closed or self._session.submitted:
                self._monitor.release(handle)
                return
            self._monitor_handle = handle
            self._session.monitoring_active = True
