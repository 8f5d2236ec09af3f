"""
services/exam_service.py

문제 팔레트 상태 판정 및 표시용 헬퍼.
순수 Python 함수로 구성. 네트워크, 전역 상태 변경 없음.
"""

from typing import Dict, List, Optional

from proctored_exam.models.question_model import MAX_OPTIONS, Question, QuestionStatus
from proctored_exam.models.session_state import ExamStats


def question_status(question: Question) -> QuestionStatus:
    """
    문제 하나의 팔레트 상태를 판정한다.

    판정 기준:
      - 답함 + 검토 표시   → ANSWERED_AND_MARKED
      - 답함               → ANSWERED
      - 검토 표시만        → MARKED
      - 그 외              → NOT_ANSWERED (미방문, 선택만 하고 확정하지 않은 문제 포함)
    """
    if question.is_answered and question.is_marked_for_review:
        return QuestionStatus.ANSWERED_AND_MARKED
    if question.is_answered:
        return QuestionStatus.ANSWERED
    if question.is_marked_for_review:
        return QuestionStatus.MARKED
    return QuestionStatus.NOT_ANSWERED


def calculate_stats(questions: List[Question]) -> ExamStats:
    """
    팔레트 범례 집계를 계산한다.

    모든 문제는 정확히 한 상태에 속하므로 네 값의 합은 len(questions) 와 같다.

    Args:
        questions: 세션의 전체 Question 리스트.

    Returns:
        ExamStats
    """
    counts: Dict[QuestionStatus, int] = {status: 0 for status in QuestionStatus}
    for q in questions:
        counts[question_status(q)] += 1

    return ExamStats(
        answered=counts[QuestionStatus.ANSWERED],
        not_answered=counts[QuestionStatus.NOT_ANSWERED],
        marked_for_review=counts[QuestionStatus.MARKED],
        answered_and_marked_for_review=counts[QuestionStatus.ANSWERED_AND_MARKED],
    )


def build_palette(questions: List[Question], current_position: int) -> List[Dict[str, object]]:
    """
    문제 번호 그리드용 데이터.

    Returns:
        [{"position": int, "status": str, "is_current": bool}, ...] 위치 순서.
    """
    return [
        {
            "position": q.position,
            "status": question_status(q).value,
            "is_current": q.position == current_position,
        }
        for q in questions
    ]


def format_time(total_seconds: int) -> str:
    """남은 시간(초) → "HH:MM:SS"."""
    total_seconds = max(0, int(total_seconds))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def option_letter(index: Optional[int]) -> str:
    """
    보기 인덱스를 채점 서버가 쓰는 문자로 변환한다 (0 → "A", 1 → "B", ...).
    선택이 없으면 빈 문자열. 채점 서버에서 "무응답"을 의미한다.
    """
    if index is None:
        return ""
    if not 0 <= index < MAX_OPTIONS:
        raise ValueError(f"보기 인덱스는 0 ~ {MAX_OPTIONS - 1} 범위여야 합니다: {index}")
    return chr(ord("A") + index)
