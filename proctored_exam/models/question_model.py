from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from proctored_exam.errors import FetchErrorKind

# 보기는 A ~ Z 문자로 채점 서버에 전송된다.
MAX_OPTIONS = 26


class QuestionContent(BaseModel):
    """
    문제 은행에서 내려받은 문제 본문.
    한 번 캐시되면 세션이 끝날 때까지 바뀌지 않는다.
    """
    id: int = Field(
        ...,
        description="문제 은행의 문제 ID (답안 제출 시 함께 전송)"
    )
    text: str = Field(
        ...,
        min_length=1,
        description="발문"
    )
    options: List[str] = Field(
        ...,
        description="보기 리스트 (0 → A, 1 → B, ...)"
    )
    position: int = Field(
        ...,
        ge=1,
        alias="question_number",
        description="시험 내 문제 위치 (1-based)"
    )

    model_config = {"populate_by_name": True}

    @field_validator('options')
    @classmethod
    def validate_options_length(cls, v: List[str]) -> List[str]:
        """
        보기는 2개 이상, MAX_OPTIONS 개 이하여야 한다.
        """
        if len(v) < 2:
            raise ValueError("보기(options)는 최소 2개 이상의 항목이 필요합니다.")
        if len(v) > MAX_OPTIONS:
            raise ValueError(f"보기(options)는 최대 {MAX_OPTIONS}개까지 가능합니다: {len(v)}개")
        return v


class QuestionStatus(str, Enum):
    """문제 팔레트 색상 분류."""
    ANSWERED = "answered"
    NOT_ANSWERED = "not_answered"
    MARKED = "marked"
    ANSWERED_AND_MARKED = "answered_marked"


class Question(BaseModel):
    """
    위치별 로컬 답안 상태.

    selected_option 은 저장/검토 표시로 확정된 보기만 담는다.
    아직 확정하지 않은 선택(pending choice)은 ExamSession.pending_option 에 있다.
    """
    position: int = Field(..., ge=1)
    content: Optional[QuestionContent] = None
    selected_option: Optional[int] = None
    is_answered: bool = False
    is_marked_for_review: bool = False
    fetch_error: Optional[FetchErrorKind] = None
    is_loading: bool = False

    @property
    def is_loaded(self) -> bool:
        return self.content is not None
