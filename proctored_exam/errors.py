"""
errors.py

시험 세션에서 발생하는 예외 계층.

- FetchFailure         : 문제 내용 조회 실패 (복구 가능, 사용자가 재시도)
- SubmissionFailure    : 원격 답안 저장 실패 (로그만 남기고 무시)
- ResourceUnavailable  : 감독 카메라 확보 실패 (로그, 시험은 계속)
- InvalidOperation     : 제출 이후의 조작 / 범위를 벗어난 위치·보기 번호
- IdentityVerificationError : 응시자 본인 확인 실패 (컨트롤러 생성 전 단계)

컨트롤러 경계를 넘어 호출자에게 전달되는 것은 InvalidOperation 뿐이다.
"""

from enum import Enum


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NETWORK = "network"
    MALFORMED = "malformed"


class ExamError(Exception):
    """시험 세션 예외의 공통 부모."""


class FetchFailure(ExamError):
    def __init__(self, kind: FetchErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)


class SubmissionFailure(ExamError):
    pass


class ResourceUnavailable(ExamError):
    pass


class InvalidOperation(ExamError):
    pass


class IdentityVerificationError(ExamError):
    pass
