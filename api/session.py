"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 상태를 유지.
세션에는 본인 확인된 응시자(student)와 시험 컨트롤러(controller)가 들어간다.
TTL(기본: 시험 시간 + 1시간) 경과 시 만료되며, 만료된 세션의 컨트롤러는 호출자가 정리한다.
"""

import threading
import time
import uuid
from typing import Any, List

from config import SESSION_TTL

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "student": None,
        "controller": None,
    }


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None (만료 세션 정리는 cleanup_expired 담당)."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            return None
        _timestamps[sid] = time.time()  # 접근 시 갱신
        return _sessions[sid]


def get(sid: str, key: str, default=None):
    """세션에서 값 읽기."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """세션에 값 쓰기."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> Any:
    """세션 초기화. 정리해야 할 이전 컨트롤러를 반환 (없으면 None)."""
    with _lock:
        if sid not in _sessions:
            return None
        controller = _sessions[sid].get("controller")
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return controller


def cleanup_expired() -> List[Any]:
    """만료된 세션을 제거하고, 정리해야 할 컨트롤러 리스트를 반환."""
    now = time.time()
    controllers: List[Any] = []
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            controller = _sessions[sid].get("controller")
            if controller is not None:
                controllers.append(controller)
            del _sessions[sid]
            del _timestamps[sid]
    return controllers


def swap(sid: str, key: str, value) -> Any:
    """세션 값을 교체하고 이전 값을 반환. 세션이 없으면 value 를 그대로 돌려준다 (호출자가 정리)."""
    with _lock:
        if sid not in _sessions:
            return value
        previous = _sessions[sid].get(key)
        _sessions[sid][key] = value
        _timestamps[sid] = time.time()
    return previous


def drain_controllers() -> List[Any]:
    """모든 세션에서 컨트롤러를 떼어내 반환 (서버 종료 시 정리용)."""
    controllers: List[Any] = []
    with _lock:
        for state in _sessions.values():
            controller = state.get("controller")
            if controller is not None:
                controllers.append(controller)
                state["controller"] = None
    return controllers
