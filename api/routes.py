"""
api/routes.py — FastAPI 엔드포인트
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

import config
import api.session as session

from proctored_exam.errors import IdentityVerificationError, InvalidOperation
from proctored_exam.models.student_model import ExamConfig, Student
from proctored_exam.services.answer_submitter import AnswerSubmitter
from proctored_exam.services.exam_controller import ExamController
from proctored_exam.services.exam_service import format_time
from proctored_exam.services.identity_service import verify_identity
from proctored_exam.services.proctoring import CameraChannel, NullChannel
from proctored_exam.services.question_source import QuestionSource

logger = logging.getLogger(__name__)

router = APIRouter()

EXAM_CONFIG = ExamConfig(
    title=config.EXAM_TITLE,
    duration_minutes=config.EXAM_DURATION_MINUTES,
    total_questions=config.EXAM_TOTAL_QUESTIONS,
    languages=config.EXAM_LANGUAGES,
)

# ── Pydantic request bodies ──────────────────────────────────────────────────

class VerifyIdentityBody(BaseModel):
    email: str
    exam_id: str

class SelectOptionBody(BaseModel):
    index: int

class JumpBody(BaseModel):
    position: int


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def build_controller() -> ExamController:
    """설정값으로 어댑터를 묶어 새 컨트롤러를 만든다."""
    monitor = CameraChannel(config.CAMERA_INDEX) if config.PROCTORING_ENABLED else NullChannel()
    return ExamController(
        source=QuestionSource(config.QUESTION_BANK_URL, config.HTTP_TIMEOUT),
        submitter=AnswerSubmitter(config.QUESTION_BANK_URL, config.HTTP_TIMEOUT),
        monitor=monitor,
        tick_interval=config.TIMER_TICK_SECONDS,
    )


def _controller(request: Request) -> ExamController:
    controller = session.get(request.state.session_id, "controller")
    if controller is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return controller


def _state_payload(controller: ExamController) -> dict:
    snap = controller.snapshot()
    current = snap.current_question
    return {
        "phase": snap.phase.value,
        "total": snap.total_questions,
        "current_position": snap.current_position,
        "time_remaining_seconds": snap.time_remaining_seconds,
        "time_display": format_time(snap.time_remaining_seconds),
        "is_submitted": snap.submitted,
        "submit_reason": snap.submit_reason,
        "monitoring_active": snap.monitoring_active,
        "current_question": {
            "position": current.position,
            "content": current.content.model_dump() if current.content else None,
            "fetch_error": current.fetch_error.value if current.fetch_error else None,
            "is_loading": current.is_loading,
            "pending_option": snap.pending_option,
            "is_answered": current.is_answered,
            "is_marked_for_review": current.is_marked_for_review,
        },
        "stats": controller.stats().model_dump(),
    }


async def _apply(controller: ExamController, operation, *args) -> dict:
    try:
        await operation(*args)
    except InvalidOperation as e:
        status = 409 if controller.session.submitted else 400
        raise HTTPException(status_code=status, detail=str(e))
    return _state_payload(controller)


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.get("/api/exam-config")
async def get_exam_config():
    return EXAM_CONFIG.model_dump()


@router.post("/api/verify-identity")
async def api_verify_identity(body: VerifyIdentityBody, request: Request):
    try:
        student: Student = await verify_identity(body.email, body.exam_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except IdentityVerificationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    session.put(request.state.session_id, "student", student)
    return {"ok": True, "student": student.model_dump()}


@router.post("/api/start-exam")
async def start_exam(request: Request):
    sid = request.state.session_id
    student: Student | None = session.get(sid, "student")
    if student is None:
        raise HTTPException(status_code=400, detail="본인 확인이 필요합니다.")

    previous = session.swap(sid, "controller", None)
    if previous is not None:
        await previous.close()

    controller = build_controller()
    try:
        await controller.initialize(EXAM_CONFIG.total_questions, EXAM_CONFIG.duration_seconds)
        # 첫 문제가 준비(또는 실패)될 때까지 대기 (화면의 "시험 준비 중" 구간)
        await controller.wait_ready()
    except BaseException:
        await controller.close()
        raise

    # 같은 세션의 시작 요청이 겹치면 마지막으로 끝난 컨트롤러만 남기고 나머지는 정리
    replaced = session.swap(sid, "controller", controller)
    if replaced is controller:
        await controller.close()
        raise HTTPException(status_code=404, detail="세션이 만료되었습니다.")
    if replaced is not None:
        logger.warning("같은 세션에서 시험 시작 요청이 겹쳐 이전 컨트롤러를 정리합니다.")
        await replaced.close()
    student.camera_status = "enabled" if controller.session.monitoring_active else "disabled"
    logger.info(f"시험 시작 - {student.email} / {student.exam_id}")
    return {"ok": True, "total": EXAM_CONFIG.total_questions}


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    return _state_payload(_controller(request))


@router.get("/api/palette")
async def get_palette(request: Request):
    controller = _controller(request)
    return {
        "questions": controller.palette(),
        "stats": controller.stats().model_dump(),
    }


@router.post("/api/select-option")
async def select_option(body: SelectOptionBody, request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.select_option, body.index)


@router.post("/api/save-and-next")
async def save_and_next(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.save_and_advance)


@router.post("/api/mark-and-next")
async def mark_and_next(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.mark_for_review_and_advance)


@router.post("/api/clear-response")
async def clear_response(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.clear_response)


@router.post("/api/jump")
async def jump(body: JumpBody, request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.jump_to, body.position)


@router.post("/api/previous")
async def previous(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.previous)


@router.post("/api/next")
async def next_question(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.next)


@router.post("/api/retry-question")
async def retry_question(request: Request):
    controller = _controller(request)
    return await _apply(controller, controller.retry_fetch)


@router.post("/api/submit-exam")
async def submit_exam(request: Request):
    controller = _controller(request)
    await controller.submit()
    return _state_payload(controller)


@router.post("/api/reset")
async def reset_session(request: Request):
    controller = session.reset(request.state.session_id)
    if controller is not None:
        await controller.close()
    return {"ok": True}
