"""
services/question_source.py

문제 은행에서 위치별 문제 본문을 조회하는 어댑터.

GET {base}/get-question?question_number=N
  → {"success": true, "data": {"id", "text", "options", "question_number"}}

오류 분류:
  - HTTP 404                                   → NOT_FOUND
  - 연결 실패 / 타임아웃 / 그 밖의 비정상 상태 코드 → NETWORK
  - JSON 아님 / success=false / 필드 누락·불일치  → MALFORMED

호출 사이에 세션 데이터를 보관하지 않는다 (마지막 오류 슬롯만 유지).
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from config import HTTP_TIMEOUT, QUESTION_BANK_URL
from proctored_exam.errors import FetchErrorKind, FetchFailure
from proctored_exam.models.question_model import QuestionContent

logger = logging.getLogger(__name__)


class QuestionSource:

    def __init__(
        self,
        base_url: str = QUESTION_BANK_URL,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.last_error: Optional[FetchFailure] = None

    async def fetch(self, position: int) -> QuestionContent:
        """
        position 위치의 문제를 조회한다.

        Raises:
            FetchFailure: kind 로 NOT_FOUND / NETWORK / MALFORMED 구분.
        """
        try:
            content = await self._fetch(position)
        except FetchFailure as e:
            self.last_error = e
            raise
        self.last_error = None
        logger.debug(f"문제 {position} 조회 완료 (id={content.id})")
        return content

    async def _fetch(self, position: int) -> QuestionContent:
        url = f"{self.base_url}/get-question"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params={"question_number": position})
        except httpx.HTTPError as e:
            raise FetchFailure(FetchErrorKind.NETWORK, f"문제 {position} 조회 중 네트워크 오류: {e}") from e

        if response.status_code == 404:
            raise FetchFailure(FetchErrorKind.NOT_FOUND, f"문제 {position}을(를) 찾을 수 없습니다.")
        if response.status_code >= 400:
            raise FetchFailure(
                FetchErrorKind.NETWORK,
                f"문제 {position} 조회 실패 (HTTP {response.status_code})",
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FetchFailure(FetchErrorKind.MALFORMED, "응답이 JSON 형식이 아닙니다.") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise FetchFailure(FetchErrorKind.MALFORMED, message or "문제 조회 응답이 올바르지 않습니다.")

        try:
            content = QuestionContent.model_validate(body.get("data"))
        except ValidationError as e:
            raise FetchFailure(FetchErrorKind.MALFORMED, f"문제 {position} 데이터 검증 실패: {e}") from e

        if content.position != position:
            raise FetchFailure(
                FetchErrorKind.MALFORMED,
                f"요청한 위치({position})와 응답 위치({content.position})가 다릅니다.",
            )
        return content
