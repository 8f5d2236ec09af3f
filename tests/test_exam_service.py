"""
Tests for palette status derivation and display helpers
"""
import pytest

from proctored_exam.models.question_model import Question, QuestionStatus
from proctored_exam.services.exam_service import (
    build_palette,
    calculate_stats,
    format_time,
    option_letter,
    question_status,
)


class TestQuestionStatus:
    """답함/검토 조합별 팔레트 상태"""

    @pytest.mark.parametrize("answered,marked,expected", [
        (True, True, QuestionStatus.ANSWERED_AND_MARKED),
        (True, False, QuestionStatus.ANSWERED),
        (False, True, QuestionStatus.MARKED),
        (False, False, QuestionStatus.NOT_ANSWERED),
    ])
    def test_status_mapping(self, answered, marked, expected):
        q = Question(position=1, is_answered=answered, is_marked_for_review=marked)
        assert question_status(q) == expected

    def test_unsaved_selection_counts_as_not_answered(self):
        """확정하지 않은 선택은 미답으로 본다"""
        q = Question(position=1, selected_option=None, is_answered=False)
        assert question_status(q) == QuestionStatus.NOT_ANSWERED


class TestStats:
    """집계는 전체 문제 수의 분할"""

    def test_counts_partition_total(self):
        questions = [
            Question(position=1, is_answered=True),
            Question(position=2, is_answered=True, is_marked_for_review=True),
            Question(position=3, is_marked_for_review=True),
            Question(position=4),
            Question(position=5),
        ]

        stats = calculate_stats(questions)

        assert stats.answered == 1
        assert stats.answered_and_marked_for_review == 1
        assert stats.marked_for_review == 1
        assert stats.not_answered == 2
        assert stats.total == len(questions)

    def test_empty_session(self):
        stats = calculate_stats([Question(position=i) for i in range(1, 31)])
        assert stats.not_answered == 30
        assert stats.total == 30

    def test_palette_marks_current(self):
        questions = [Question(position=1, is_answered=True), Question(position=2)]

        palette = build_palette(questions, current_position=2)

        assert palette == [
            {"position": 1, "status": "answered", "is_current": False},
            {"position": 2, "status": "not_answered", "is_current": True},
        ]


class TestFormatting:
    """시간 표시와 보기 문자 변환"""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00:00"),
        (59, "00:00:59"),
        (3600, "01:00:00"),
        (10800, "03:00:00"),
        (3725, "01:02:05"),
        (-5, "00:00:00"),
    ])
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected

    def test_option_letter(self):
        assert option_letter(0) == "A"
        assert option_letter(1) == "B"
        assert option_letter(3) == "D"

    def test_no_selection_is_empty_string(self):
        assert option_letter(None) == ""

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            option_letter(-1)

    def test_letters_stop_at_z(self):
        assert option_letter(25) == "Z"
        with pytest.raises(ValueError):
            option_letter(26)
