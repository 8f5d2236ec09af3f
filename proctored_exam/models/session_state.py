"""
models/session_state.py

시험 응시 1회분의 전체 상태 모델.
Pydantic BaseModel 기반. 필드 변경은 ExamController 를 통해서만 일어난다.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from proctored_exam.models.question_model import Question


class ExamPhase(str, Enum):
    INITIALIZING = "initializing"
    ACTIVE = "active"
    SUBMITTED = "submitted"


class ExamSession(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델.

    Attributes:
        total_questions:        문제 수. 세션 시작 시 고정.
        duration_seconds:       시험 제한 시간 (초).
        current_position:       현재 보고 있는 문제 위치 (1-based).
        time_remaining_seconds: 남은 시간. 진행 중에는 감소만 한다.
        submitted:              최종 제출 여부. False → True 로 한 번만 바뀐다.
        phase:                  initializing / active / submitted.
        pending_option:         현재 문제에서 아직 확정하지 않은 선택 보기.
        entered_at_remaining:   현재 문제에 들어왔을 때의 남은 시간 (문항별 소요 시간 계산용).
        monitoring_active:      감독 카메라 확보 여부.
        submit_reason:          "manual", "timeout" 또는 "expired" (세션 만료 정리).
        questions:              위치 순서의 Question 리스트 (index == position - 1).
    """

    total_questions: int = Field(..., ge=1)
    duration_seconds: int = Field(..., ge=0)
    current_position: int = Field(default=1, ge=1)
    time_remaining_seconds: int = Field(..., ge=0)
    submitted: bool = False
    phase: ExamPhase = ExamPhase.INITIALIZING
    pending_option: Optional[int] = None
    entered_at_remaining: int = Field(default=0, ge=0)
    monitoring_active: bool = False
    submit_reason: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)

    def question_at(self, position: int) -> Question:
        return self.questions[position - 1]

    @property
    def current_question(self) -> Question:
        return self.question_at(self.current_position)


class ExamStats(BaseModel):
    """팔레트 범례에 표시하는 집계. 네 값의 합은 항상 total_questions."""
    answered: int = 0
    not_answered: int = 0
    marked_for_review: int = 0
    answered_and_marked_for_review: int = 0

    @property
    def total(self) -> int:
        return (
            self.answered
            + self.not_answered
            + self.marked_for_review
            + self.answered_and_marked_for_review
        )
