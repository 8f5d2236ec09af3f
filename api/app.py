"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + 만료 세션 정리
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import SESSION_TTL
from api.routes import router
import api.session as session

SESSION_COOKIE = "cbt_session"
CLEANUP_INTERVAL = 300  # 5분

logger = logging.getLogger(__name__)


async def _close_expired() -> int:
    controllers = session.cleanup_expired()
    for controller in controllers:
        # 진행 중인 시험은 버리지 않고 제출 처리한 뒤 정리
        if await controller.submit(reason="expired"):
            logger.warning("만료된 세션의 진행 중 시험을 제출 처리했습니다.")
        await controller.close()
    return len(controllers)


async def _close_all() -> int:
    controllers = session.drain_controllers()
    for controller in controllers:
        await controller.close()
    return len(controllers)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    # 만료 세션 주기적 정리 (컨트롤러의 타이머/카메라까지 정리해야 하므로 이벤트 루프에서 실행)
    async def _cleanup_loop():
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL)
            removed = await _close_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    task = asyncio.create_task(_cleanup_loop())
    try:
        yield
    finally:
        task.cancel()
        closed = await _close_all()
        if closed:
            logger.info(f"서버 종료 - 시험 컨트롤러 {closed}개 정리")


def create_app() -> FastAPI:
    app = FastAPI(title="Proctored CBT", docs_url=None, redoc_url=None, lifespan=_lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    return app
