"""
services/identity_service.py

응시자 본인 확인. 컨트롤러는 이 확인이 성공한 뒤에만 만들어진다.
"""

import logging
import re
from typing import List, Optional

import httpx

from config import HTTP_TIMEOUT, QUESTION_BANK_URL
from proctored_exam.errors import IdentityVerificationError
from proctored_exam.models.student_model import Student

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def validate_credentials(email: str, exam_id: str) -> List[str]:
    """입력값 검증. 오류 메시지 리스트를 반환 (비어 있으면 통과)."""
    errors: List[str] = []
    if not email.strip():
        errors.append("이메일을 입력해 주세요.")
    elif not _EMAIL_RE.search(email):
        errors.append("올바른 이메일 주소를 입력해 주세요.")
    if not exam_id.strip():
        errors.append("시험 ID를 입력해 주세요.")
    return errors


async def verify_identity(
    email: str,
    exam_id: str,
    base_url: str = QUESTION_BANK_URL,
    timeout: float = HTTP_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Student:
    """
    POST {base}/verify-id 로 응시자를 확인한다.

    Returns:
        확인된 Student.

    Raises:
        ValueError:                 입력값 형식 오류 (네트워크 호출 전).
        IdentityVerificationError:  서버가 거절했거나 통신 실패.
    """
    errors = validate_credentials(email, exam_id)
    if errors:
        raise ValueError(" ".join(errors))

    email = email.strip()
    exam_id = exam_id.strip()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                f"{base_url.rstrip('/')}/verify-id",
                json={"email": email, "exam_id": exam_id},
            )
    except httpx.HTTPError as e:
        logger.error(f"본인 확인 요청 실패: {e}")
        raise IdentityVerificationError("응시자 정보를 확인하지 못했습니다. 다시 시도해 주세요.") from e

    if response.status_code != 200:
        logger.warning(f"본인 확인 거절 - {email} / {exam_id} (HTTP {response.status_code})")
        raise IdentityVerificationError("응시자 정보가 올바르지 않습니다.")

    name = "Student"
    try:
        body = response.json()
        if isinstance(body, dict):
            data = body.get("data")
            if isinstance(data, dict) and data.get("name"):
                name = str(data["name"])
    except ValueError:
        pass

    logger.info(f"본인 확인 완료 - {email} / {exam_id}")
    return Student(name=name, email=email, exam_id=exam_id)
