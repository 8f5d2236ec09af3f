"""
services/answer_submitter.py

채점 서버로 답안을 보내는 어댑터 (best-effort).

POST {base}/submit-answer
  {"question_number", "question_id", "answer", "time_taken"}

실패 시 SubmissionFailure 를 올리지만, 컨트롤러는 이를 로그로만 남기고
재시도하지 않는다. 같은 문제를 여러 번 보내도 원격에서 덮어쓴다.
"""

import logging
from typing import Optional

import httpx

from config import HTTP_TIMEOUT, QUESTION_BANK_URL
from proctored_exam.errors import SubmissionFailure
from proctored_exam.services.exam_service import option_letter

logger = logging.getLogger(__name__)


class AnswerSubmitter:

    def __init__(
        self,
        base_url: str = QUESTION_BANK_URL,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def submit(
        self,
        position: int,
        question_id: int,
        option_index: Optional[int],
        elapsed_seconds: int,
    ) -> dict:
        payload = {
            "question_number": position,
            "question_id": question_id,
            "answer": option_letter(option_index),
            "time_taken": max(0, int(elapsed_seconds)),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/submit-answer", json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise SubmissionFailure(f"문제 {position} 답안 전송 실패: {e}") from e

        logger.info(f"답안 전송 완료 - 문제 {position}, 답 '{payload['answer'] or '-'}'")
        try:
            return response.json()
        except ValueError:
            return {}
